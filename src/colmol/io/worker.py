"""
Run contact searches in a separate process.

The worker receives a JSON snapshot of the structure (``to_json``), so
nothing is shared with the caller; it rebuilds the structure, runs the
search and sends back ``ContactResult.to_json()``.
"""

import concurrent.futures
import logging
import multiprocessing
from typing import Dict, Iterable, List, Optional, Tuple

from colmol.core.constants import CONTACT_MAX_ANGLE, CONTACT_MAX_DIST
from colmol.core.structures import Structure
from colmol.spatial.contact import Contact, ContactResult, polar_backbone_contacts, polar_contacts

logger = logging.getLogger(__name__)

CONTACT_MODES = ("contact", "polar", "polar_backbone")


def _run_contact_job(structure_json: Dict, mode: str, sele1: Optional[str], sele2: Optional[str],
                     max_distance: float, min_distance: Optional[float], max_angle: float) -> Dict:
    structure = Structure().from_json(structure_json)

    if mode == "polar":
        result = polar_contacts(structure, max_distance, max_angle)
    elif mode == "polar_backbone":
        result = polar_backbone_contacts(structure, max_distance, max_angle)
    else:
        view1 = structure.get_view(sele1) if sele1 else structure
        view2 = structure.get_view(sele2) if sele2 else structure
        result = Contact(view1, view2).within(max_distance, min_distance)

    return result.to_json()


def _check_mode(mode: str):
    if mode not in CONTACT_MODES:
        raise ValueError(f"unknown contact mode {mode!r}, expected one of {CONTACT_MODES}")


def contacts_in_worker(
    structure: Structure,
    mode: str = "contact",
    sele1: Optional[str] = None,
    sele2: Optional[str] = None,
    max_distance: float = CONTACT_MAX_DIST,
    min_distance: Optional[float] = None,
    max_angle: float = CONTACT_MAX_ANGLE,
) -> ContactResult:
    """
    Contact search on a snapshot of ``structure`` in a worker process.

    Args:
        structure: Structure to search (not a view)
        mode: "contact" (``Contact.within`` between the two selections),
            "polar" or "polar_backbone"
        sele1: Probe selection string for "contact" mode (all atoms if None)
        sele2: Target selection string for "contact" mode (all atoms if None)
        max_distance: Distance bound
        min_distance: Lower distance bound for "contact" mode
        max_angle: Angle bound for the polar modes (degrees)

    Returns:
        ContactResult indexed like ``structure``
    """
    results = contacts_in_workers(
        structure, [(sele1, sele2)], mode=mode, max_distance=max_distance,
        min_distance=min_distance, max_angle=max_angle, max_workers=1,
    )
    return results[0]


def contacts_in_workers(
    structure: Structure,
    selection_pairs: Iterable[Tuple[Optional[str], Optional[str]]],
    mode: str = "contact",
    max_distance: float = CONTACT_MAX_DIST,
    min_distance: Optional[float] = None,
    max_angle: float = CONTACT_MAX_ANGLE,
    max_workers: int = 2,
) -> List[ContactResult]:
    """
    One contact search per ``(sele1, sele2)`` pair, spread over a process
    pool. Results come back in input order.
    """
    _check_mode(mode)
    pairs = list(selection_pairs)
    if not pairs:
        return []

    payload = structure.to_json()
    max_workers = max(1, min(max_workers, len(pairs)))
    ctx = multiprocessing.get_context("spawn")

    logger.debug("contacts_in_workers: %d jobs on %d workers", len(pairs), max_workers)
    with concurrent.futures.ProcessPoolExecutor(max_workers=max_workers, mp_context=ctx) as executor:
        futures = [
            executor.submit(
                _run_contact_job, payload, mode, sele1, sele2,
                max_distance, min_distance, max_angle,
            )
            for sele1, sele2 in pairs
        ]
        return [ContactResult.from_json(future.result()) for future in futures]
