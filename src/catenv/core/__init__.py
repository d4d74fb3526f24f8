"""Core building blocks: agent references, buckets, index and mixing model."""

from catenv.core.agent import AgentRef
from catenv.core.bucket import AgentBucket
from catenv.core.environment import Environment
from catenv.core.index import CategoricalIndex
from catenv.core.indexer import CompoundIndexer
from catenv.core.mixing import MixingModel

__all__ = [
    "AgentRef",
    "AgentBucket",
    "CompoundIndexer",
    "CategoricalIndex",
    "MixingModel",
    "Environment",
]
