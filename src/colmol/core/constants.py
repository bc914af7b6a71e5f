"""
Constants and lookup tables shared by the structure model and the
geometry routines.
"""

import math

# Radians to degrees
RADDEG = 180.0 / math.pi

# Numerical guard for near-zero vector lengths
EPSILON = 1e-10

# Molecule types (derived per residue type)
UNKNOWN_TYPE = 0
WATER_TYPE = 1
ION_TYPE = 2
PROTEIN_TYPE = 3
RNA_TYPE = 4
DNA_TYPE = 5

# Backbone types (derived per residue type)
UNKNOWN_BACKBONE_TYPE = 0
PROTEIN_BACKBONE_TYPE = 1
RNA_BACKBONE_TYPE = 2
DNA_BACKBONE_TYPE = 3
CG_PROTEIN_BACKBONE_TYPE = 4
CG_RNA_BACKBONE_TYPE = 5
CG_DNA_BACKBONE_TYPE = 6

# Amino acid names
AA_NAMES = [
    "GLY", "ALA", "SER", "CYS", "VAL", "THR", "ILE",
    "PRO", "MET", "ASP", "ASN", "LEU", "LYS", "GLU",
    "GLN", "ARG", "HIS", "PHE", "TYR", "TRP", "UNK"
]

# Single letter codes
SHORT_AA_NAMES = "GASCVTIPMDNLKEQRHFYWX"

# Nucleotide names
RNA_NAMES = ["A", "C", "G", "U", "I"]
DNA_NAMES = ["DA", "DC", "DG", "DT", "DU", "DI"]

WATER_NAMES = ["HOH", "WAT", "H2O", "DOD", "SOL", "TIP3"]
ION_NAMES = [
    "118", "119", "1AL", "1CU", "2FK", "2HP", "2OF", "3CO", "3MT", "3NI",
    "AG", "AL", "ALF", "AU", "BA", "BR", "CA", "CD", "CL", "CO", "CS", "CU",
    "F", "FE", "FE2", "HG", "IOD", "K", "LI", "MG", "MN", "NA", "NI", "PB",
    "RB", "SR", "ZN",
]

# Atom names that identify backbone atoms
PROTEIN_BACKBONE_ATOMS = ["N", "CA", "C", "O", "OXT", "OC1", "OC2", "H", "HA"]
NUCLEIC_BACKBONE_ATOMS = [
    "P", "OP1", "OP2", "O1P", "O2P", "O5'", "C5'", "C4'", "O4'", "C3'",
    "O3'", "C2'", "O2'", "C1'", "O5*", "C5*", "C4*", "O4*", "C3*", "O3*",
    "C2*", "O2*", "C1*",
]

# Representative atoms, first match wins
PROTEIN_TRACE_ATOMS = ["CA"]
NUCLEIC_TRACE_ATOMS = ["C4'", "C4*"]
CG_PROTEIN_TRACE_ATOMS = ["CA", "BB"]
CG_NUCLEIC_TRACE_ATOMS = ["P"]

PROTEIN_DIRECTION1_ATOMS = ["C"]
PROTEIN_DIRECTION2_ATOMS = ["O", "OC1", "O1", "OX1", "OXT"]
NUCLEIC_DIRECTION1_ATOMS = ["C1'", "C1*"]
NUCLEIC_DIRECTION2_ATOMS = ["C3'", "C3*"]

PROTEIN_BACKBONE_START_ATOMS = ["N"]
PROTEIN_BACKBONE_END_ATOMS = ["C"]
NUCLEIC_BACKBONE_START_ATOMS = ["P"]
NUCLEIC_BACKBONE_END_ATOMS = ["O3'", "O3*"]

# Maximum distance between backbone end and next backbone start atoms
# for two residues to count as connected (Angstroms)
PROTEIN_LINK_DIST = 2.0
NUCLEIC_LINK_DIST = 2.0
CG_PROTEIN_LINK_DIST = 4.2
CG_NUCLEIC_LINK_DIST = 7.5

# Secondary structure codes (one character per residue)
HELIX_CODES = "hgi"
SHEET_CODES = "eb"
TURN_CODES = "ts"
ARROW_CODES = "ebhgi"

# Default parameters
DEFAULT_GROWTH_FACTOR = 2.0
MIN_STORE_CAPACITY = 16
MAX_GID = 2 ** 24

CONTACT_MAX_DIST = 3.5
CONTACT_MAX_ANGLE = 40.0

SPLINE_TENSION = 0.9
NUCLEIC_SPLINE_TENSION = 0.5
SPLINE_DELTA = 0.0001
SPLINE_SUBDIV = 10
ARROW_SCALE = 1.7

HELIX_LOCAL_ANGLE = 30.0
HELIX_CENTER_DIST = 2.5
HELIX_MIN_RESIDUES = 4
HELIX_CROSSING_DIST = 12.0

RADIUS_MAX = 10.0

# Van der Waals radii (Angstroms), "" is the default
VDW_RADII = {
    "H": 1.1, "HE": 1.4, "LI": 1.81, "BE": 1.53, "B": 1.92, "C": 1.7,
    "N": 1.55, "O": 1.52, "F": 1.47, "NE": 1.54, "NA": 2.27, "MG": 1.73,
    "AL": 1.84, "SI": 2.1, "P": 1.8, "S": 1.8, "CL": 1.75, "AR": 1.88,
    "K": 2.75, "CA": 2.31, "MN": 2.0, "FE": 2.0, "CO": 2.0, "NI": 1.63,
    "CU": 1.4, "ZN": 1.39, "SE": 1.9, "BR": 1.85, "I": 1.98,
    "": 2.0,
}

# Covalent radii (Angstroms), "" is the default
COVALENT_RADII = {
    "H": 0.31, "HE": 0.28, "LI": 1.28, "BE": 0.96, "B": 0.84, "C": 0.76,
    "N": 0.71, "O": 0.66, "F": 0.57, "NE": 0.58, "NA": 1.66, "MG": 1.41,
    "AL": 1.21, "SI": 1.11, "P": 1.07, "S": 1.05, "CL": 1.02, "AR": 1.06,
    "K": 2.03, "CA": 1.76, "MN": 1.39, "FE": 1.32, "CO": 1.26, "NI": 1.24,
    "CU": 1.32, "ZN": 1.22, "SE": 1.2, "BR": 1.2, "I": 1.39,
    "": 1.6,
}

# Element colors as 0xRRGGBB, "" is the default
ELEMENT_COLORS = {
    "H": 0xFFFFFF, "C": 0x909090, "N": 0x3050F8, "O": 0xFF0D0D,
    "F": 0x90E050, "NA": 0xAB5CF2, "MG": 0x8AFF00, "P": 0xFF8000,
    "S": 0xFFFF30, "CL": 0x1FF01F, "CA": 0x3DFF00, "FE": 0xE06633,
    "ZN": 0x7D80B0, "SE": 0xFFA100, "BR": 0xA62929, "I": 0x940094,
    "": 0xFFFFFF,
}

# Secondary structure colors as 0xRRGGBB
STRUCTURE_COLORS = {
    "alphaHelix": 0xFF0080,
    "3_10Helix": 0xA00080,
    "piHelix": 0x600080,
    "betaStrand": 0xFFC800,
    "betaTurn": 0x6080FF,
    "coil": 0xFFFFFF,
    "dna": 0xAE00FE,
    "rna": 0xFD0162,
    "": 0x808080,
}

# Common modified residues to standard residue mapping
MODIFIED_RESIDUES = {
    "MSE": "MET",  # Selenomethionine
    "TPO": "THR",  # Phosphothreonine
    "SEP": "SER",  # Phosphoserine
    "PTR": "TYR",  # Phosphotyrosine
    "CSO": "CYS",  # S-hydroxycysteine
    "HYP": "PRO",  # Hydroxyproline
    "MLY": "LYS",  # N-dimethyl-lysine
    "M3L": "LYS",  # N-trimethyl-lysine
}

# Mapping from 3-letter code to type index
AA_TO_INDEX = {name: i for i, name in enumerate(AA_NAMES)}

# Mapping from single letter to type index
SHORT_TO_INDEX = {letter: i for i, letter in enumerate(SHORT_AA_NAMES)}


def get_residue_type(name: str) -> int:
    """
    Get the residue type index for a given 3-letter residue name.

    Args:
        name: 3-letter residue code (e.g., "ALA", "GLY")

    Returns:
        Residue type index (0-19), or 20 for unknown
    """
    name = name.strip().upper()

    # Check for modified residues
    if name in MODIFIED_RESIDUES:
        name = MODIFIED_RESIDUES[name]

    return AA_TO_INDEX.get(name, 20)


def get_one_letter(three_letter: str) -> str:
    """Convert a residue name to its 1-letter code."""
    name = three_letter.strip().upper()
    if name in RNA_NAMES:
        return name
    if name in DNA_NAMES:
        return name[1]
    idx = get_residue_type(name)
    if idx < len(SHORT_AA_NAMES):
        return SHORT_AA_NAMES[idx]
    return "X"


def get_three_letter(one_letter: str) -> str:
    """Convert 1-letter amino acid code to 3-letter code."""
    idx = SHORT_TO_INDEX.get(one_letter.upper(), 20)
    return AA_NAMES[idx]
