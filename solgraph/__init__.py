"""Extract contracts, structs and enums and their associations from Solidity syntax trees."""

from .associations import AssociationResolver, add_associations
from .extract import FileExtraction, convert_source_unit
from .file_walker import iter_solidity_files
from .graph import build_graph, entities_connected_to
from .models import Association, Entity, EntityBuilder, ReferenceType
from .storage import load_graph, save_entities, save_graph
from .typenames import format_type_name

__all__ = [
    "AssociationResolver",
    "add_associations",
    "FileExtraction",
    "convert_source_unit",
    "iter_solidity_files",
    "build_graph",
    "entities_connected_to",
    "Association",
    "Entity",
    "EntityBuilder",
    "ReferenceType",
    "load_graph",
    "save_entities",
    "save_graph",
    "format_type_name",
]
