"""Statement builders."""
from querycraft.builder.conditions import ConditionAssembler, ConditionScope, Fragment
from querycraft.builder.delete import Delete
from querycraft.builder.insert import Insert
from querycraft.builder.select import Select
from querycraft.builder.update import Update
from querycraft.builder.upsert import Upsert

__all__ = [
    "ConditionAssembler",
    "ConditionScope",
    "Delete",
    "Fragment",
    "Insert",
    "Select",
    "Update",
    "Upsert",
]
