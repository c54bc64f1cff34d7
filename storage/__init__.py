"""
Storage Module
Record store collaborators for persisted daily ideas
"""
from .idea_store import (
    INTEGER_SCORE_COLUMNS,
    BaseIdeaStore,
    InMemoryIdeaStore,
    SupabaseIdeaStore,
    build_idea_store,
)
from .supabase_rest import SupabaseRestClient

__all__ = [
    "INTEGER_SCORE_COLUMNS",
    "BaseIdeaStore",
    "InMemoryIdeaStore",
    "SupabaseIdeaStore",
    "build_idea_store",
    "SupabaseRestClient",
]
