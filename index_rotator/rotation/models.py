"""
Configuration index data models
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


# Reserved document id of the primary record
PRIMARY_ID = "primary"


def now_epoch() -> int:
    """Current time in epoch seconds"""
    return int(time.time())


@dataclass
class ConfigurationEntry:
    """Single record in a configuration index"""
    name: str
    id: Optional[str] = None
    timestamp: int = field(default_factory=now_epoch)

    @classmethod
    def primary(cls, name: str) -> "ConfigurationEntry":
        """Primary record pointing at `name`, stamped now"""
        return cls(name=name, id=PRIMARY_ID)

    @classmethod
    def secondary(cls, name: str) -> "ConfigurationEntry":
        """Secondary record; the engine assigns the id on write"""
        return cls(name=name)

    @classmethod
    def from_hit(cls, hit: Dict[str, Any]) -> "ConfigurationEntry":
        """Build from a get response or a search hit"""
        source = hit["_source"]
        return cls(
            name=source["name"],
            id=hit["_id"],
            timestamp=int(source.get("timestamp", 0))
        )

    @property
    def is_primary(self) -> bool:
        return self.id == PRIMARY_ID

    def to_es_doc(self) -> dict:
        """Convert to ES document body"""
        return {
            "name": self.name,
            "timestamp": self.timestamp
        }

    def to_secondary_dict(self) -> dict:
        """Secondary listing shape that carries the configuration id"""
        return {
            "index": self.name,
            "configuration_id": self.id
        }
