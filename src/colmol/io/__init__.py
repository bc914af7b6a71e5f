"""Structure file reading, JSON serialization and worker offload."""

from colmol.io.pdb_parser import convert_biopython_structure, read_coords_from_array, read_structure
from colmol.io.serialization import dump_structure, load_structure, structure_from_json, to_jsonable
from colmol.io.worker import contacts_in_worker, contacts_in_workers

__all__ = [
    "convert_biopython_structure",
    "read_coords_from_array",
    "read_structure",
    "dump_structure",
    "load_structure",
    "structure_from_json",
    "to_jsonable",
    "contacts_in_worker",
    "contacts_in_workers",
]
