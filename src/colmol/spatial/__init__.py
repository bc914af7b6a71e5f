"""Spatial index and contact search."""

from colmol.spatial.contact import Contact, ContactResult, polar_backbone_contacts, polar_contacts
from colmol.spatial.kdtree import Kdtree

__all__ = ["Contact", "ContactResult", "Kdtree", "polar_backbone_contacts", "polar_contacts"]
