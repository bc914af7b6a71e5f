"""
Session: the top-level context owning the gid pool and colour registry.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Union

import numpy as np

from colmol.core.constants import (
    CONTACT_MAX_ANGLE,
    CONTACT_MAX_DIST,
    DEFAULT_GROWTH_FACTOR,
    MAX_GID,
    SPLINE_SUBDIV,
)
from colmol.core.structures import Structure
from colmol.io.pdb_parser import read_coords_from_array, read_structure
from colmol.picking.gidpool import GidPool, PickedEntity
from colmol.schemes.colormaker import ColorMaker, ColorMakerRegistry
from colmol.spatial.contact import Contact, ContactResult, polar_backbone_contacts, polar_contacts

logger = logging.getLogger(__name__)


@dataclass
class SessionConfig:
    """Configuration for a colmol session."""

    # Structures
    debug: bool = False
    growth_factor: float = DEFAULT_GROWTH_FACTOR

    # Picking
    max_gid: int = MAX_GID

    # Analysis defaults
    contact_max_distance: float = CONTACT_MAX_DIST
    contact_max_angle: float = CONTACT_MAX_ANGLE
    spline_subdiv: int = SPLINE_SUBDIV

    # Behavior
    verbose: bool = False


class Session:
    """
    Holds loaded structures and volumes and assigns their picking gids.

    Example usage:
        >>> session = Session()
        >>> structure = session.load("1crn.pdb")
        >>> contacts = session.contacts(structure, polar=True)
        >>> session.pick(42)
    """

    def __init__(self, config: Optional[SessionConfig] = None, **kwargs):
        """
        Args:
            config: Session configuration; keyword arguments override or
                replace its fields
        """
        if config is None:
            config = SessionConfig(**kwargs)
        else:
            for key, value in kwargs.items():
                if not hasattr(config, key):
                    raise TypeError(f"unknown session option {key!r}")
                setattr(config, key, value)
        self.config = config

        self.gid_pool = GidPool(max_gid=config.max_gid)
        self.color_registry = ColorMakerRegistry()
        self.objects: List[object] = []

    # Objects

    def add(self, obj):
        """Register a Structure or Volume and allocate its gid range."""
        self.gid_pool.add_object(obj)
        self.objects.append(obj)
        return obj

    def remove(self, obj):
        self.gid_pool.remove_object(obj)
        self.objects = [o for o in self.objects if o is not obj]

    def update(self, obj):
        """Re-fit the gid range of an object whose atom or bond count changed."""
        self.gid_pool.update_object(obj)

    def load(self, path: Union[str, Path], calculate_bonds: bool = True) -> Structure:
        """
        Read a PDB or mmCIF file and register the structure.
        """
        if self.config.verbose:
            logger.info("Reading %s", path)
        structure = read_structure(
            path,
            calculate_bonds=calculate_bonds,
            debug=self.config.debug,
            growth_factor=self.config.growth_factor,
        )
        return self.add(structure)

    def from_coords(self, ca_coords: np.ndarray, sequence: Optional[str] = None,
                    chain_id: str = "A", sstruc: Optional[str] = None) -> Structure:
        """Register a C-alpha trace built from raw coordinates."""
        structure = read_coords_from_array(
            ca_coords, sequence, chain_id, sstruc=sstruc,
            debug=self.config.debug, growth_factor=self.config.growth_factor,
        )
        return self.add(structure)

    def pick(self, gid: int) -> Optional[PickedEntity]:
        return self.gid_pool.get_by_gid(gid)

    # Colours

    def color_maker(self, scheme: str = "", structure=None, **params) -> ColorMaker:
        return self.color_registry.get_scheme(scheme, structure=structure, gid_pool=self.gid_pool, **params)

    def picking_color_maker(self, structure) -> ColorMaker:
        return self.color_registry.get_picking_scheme(structure=structure, gid_pool=self.gid_pool)

    # Analysis

    def contacts(
        self,
        structure,
        sele1=None,
        sele2=None,
        max_distance: Optional[float] = None,
        min_distance: Optional[float] = None,
        polar: bool = False,
        backbone_only: bool = False,
    ) -> ContactResult:
        """
        Contacts between two selections of ``structure``, or polar
        contacts when ``polar`` is set (selections are then ignored).
        """
        if max_distance is None:
            max_distance = self.config.contact_max_distance
        max_angle = self.config.contact_max_angle

        if polar:
            if backbone_only:
                return polar_backbone_contacts(structure, max_distance, max_angle)
            return polar_contacts(structure, max_distance, max_angle)

        view1 = structure.get_view(sele1) if sele1 is not None else structure
        view2 = structure.get_view(sele2) if sele2 is not None else structure
        return Contact(view1, view2).within(max_distance, min_distance)

    def polymers(self, structure, selection=None) -> List:
        polymers = []
        structure.each_polymer(polymers.append, selection)
        return polymers

    def splines(self, structure, selection=None, m: Optional[int] = None,
                arrows: bool = False) -> List[Dict[str, np.ndarray]]:
        """Position and orientation samples of every polymer."""
        from colmol.backbone.spline import Spline

        if m is None:
            m = self.config.spline_subdiv

        result = []
        for polymer in self.polymers(structure, selection):
            spline = Spline(polymer, arrows=arrows)
            data = {"polymer": polymer}
            data.update(spline.get_subdivided_position(m))
            data.update(spline.get_subdivided_orientation(m))
            result.append(data)
        return result

    def helices(self, structure, selection=None, **params) -> List:
        """Helix segments of every polymer with at least 4 residues."""
        from colmol.backbone.helixbundle import Helixbundle

        helices = []
        for polymer in self.polymers(structure, selection):
            if polymer.residue_count < 4:
                continue
            helices.extend(Helixbundle(polymer).get_helices(**params))
        return helices

    def helix_crossing(self, structure, selection=None, min_distance: Optional[float] = None,
                       **params) -> Dict:
        from colmol.backbone.helix import HelixCrossing

        crossing = HelixCrossing(self.helices(structure, selection, **params))
        if min_distance is None:
            return crossing.get_crossing()
        return crossing.get_crossing(min_distance)

    def dispose(self):
        for obj in list(self.objects):
            self.remove(obj)
            if isinstance(obj, Structure):
                obj.dispose()


def load(path: Union[str, Path], **kwargs) -> Structure:
    """
    Convenience function: read a structure file outside of any session.

    Args:
        path: Path to a PDB or mmCIF file
        **kwargs: Passed to ``read_structure``

    Returns:
        Structure
    """
    return read_structure(path, **kwargs)
