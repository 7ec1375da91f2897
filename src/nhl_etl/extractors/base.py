from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


@dataclass
class EndpointSpec:
    name: str
    path: str
    type: str
    records_path: Tuple[str, ...] = field(default_factory=tuple)
    start_date_param: Optional[str] = None
    end_date_param: Optional[str] = None
    expand: Optional[str] = None

    def format_path(self, **params: Any) -> str:
        return self.path.format(**params)

    def extract(self, payload: Any) -> List[Dict[str, Any]]:
        """Walk ``records_path`` from the payload root and collect entity objects.

        Lists met on the way are iterated, so ``("dates", "games")`` gathers the
        games of every date. Missing keys contribute nothing.
        """
        nodes: List[Any] = [payload]
        for key in self.records_path:
            nxt: List[Any] = []
            for node in nodes:
                for item in _as_list(node):
                    if isinstance(item, dict) and item.get(key) is not None:
                        nxt.append(item[key])
            nodes = nxt
        records: List[Dict[str, Any]] = []
        for node in nodes:
            records.extend(item for item in _as_list(node) if isinstance(item, dict))
        return records


def _as_list(node: Any) -> List[Any]:
    if node is None:
        return []
    if isinstance(node, list):
        return node
    return [node]


def build_extractor(spec: Dict[str, Any]) -> EndpointSpec:
    return EndpointSpec(
        name=spec["name"],
        path=spec["path"],
        type=spec["type"],
        records_path=tuple(spec.get("records_path") or ()),
        start_date_param=spec.get("start_date_param"),
        end_date_param=spec.get("end_date_param"),
        expand=spec.get("expand"),
    )
