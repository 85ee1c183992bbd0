"""
Mind map generation without the language model

Rule-based pass over the document's line structure (headings become
level-1 nodes, bullets and short fragments become their children), with a
keyword-frequency fallback when the text has too little structure. Nodes
are laid out on concentric rings by BFS depth from the root.
"""
import logging
import math
import re
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from learnsphere.exceptions import ValidationError

logger = logging.getLogger(__name__)

STOP_WORDS = frozenset("""
a about above after again against all also am an and any are as at be because been before being below
between both but by can could did do does doing down during each even few for from further had has have
having he her here hers herself him himself his how however i if in into is it its itself just may me
might more most must my myself no nor not now of off on once only or other our ours ourselves out over
own same she should so some such than that the their theirs them themselves then there these they this
those through thus to too under until up upon very was we were what when where which while who whom why
will with within without would you your yours yourself yourselves one two three first second new used use
using many much well way ways make made like get also etc page chapter figure table example examples
""".split())

NUMBERED_HEADING = re.compile(r"^(\d+(\.\d+)*[.)]?|[IVXLC]+[.)]|[A-Z][.)])\s+\S")
BULLET = re.compile(r"^[-*•▪◦·‣⁃]\s*")
LETTER_ITEM = re.compile(r"^[a-z][.)]\s+")
LIST_PREFIX = re.compile(r"^(\d+(\.\d+)*[.)]?|[IVXLC]+[.)]|[A-Za-z][.)]|[-*•▪◦·‣⁃])\s*")
PAGE_NUMBER = re.compile(r"^(page\s*)?\d+(\s*(of|/)\s*\d+)?$", re.IGNORECASE)
URL = re.compile(r"https?://|www\.", re.IGNORECASE)
SYMBOLS = re.compile(r"[©®™]")
NON_WORD = re.compile(r"[^\w\s'-]")
SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+")
KEYWORD = re.compile(r"[a-z][a-z'-]{2,}")


class MindMapService:
    """Deterministic mind map builder"""

    MAX_NODES = 40
    MAX_CHILDREN = 6
    MIN_RULE_NODES = 5
    MAX_LABEL_WORDS = 8
    KEYWORD_COUNT = 8
    RING_RADIUS = 260

    def generate(self, text: Optional[str]) -> Dict[str, Any]:
        """
        Build a mind map from extracted document text

        Returns:
            {nodes, edges, metadata: {method, nodeCount, edgeCount, confidence, generatedAt}}
            Empty text yields zero nodes and edges.
        """
        if not text or not text.strip():
            return self._result([], [], "empty", 0.0)

        lines = self._split_lines(text)
        root_index, root_label = self._find_root(lines)

        nodes, edges, headings = self._rule_based(lines, root_index, root_label)
        if len(nodes) >= self.MIN_RULE_NODES:
            method = "rule-based"
            children = len(nodes) - 1 - headings
            confidence = min(0.95, 0.5 + 0.08 * headings + 0.02 * children)
        else:
            nodes, edges, keyword_share = self._statistical(text, root_label)
            method = "statistical"
            confidence = min(0.6, 0.2 + keyword_share)

        self._layout(nodes, edges)
        logger.info(f"Mind map generated ({method}): {len(nodes)} nodes, {len(edges)} edges")
        return self._result(nodes, edges, method, confidence)

    def validate_edit(self, nodes: List[Dict[str, Any]], edges: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Check a client-edited mind map before it is saved

        Raises:
            ValidationError: duplicate node ids or an edge pointing at a missing node
        """
        node_ids = [node["id"] for node in nodes]
        if len(set(node_ids)) != len(node_ids):
            raise ValidationError("Mind map node ids must be unique")

        known = set(node_ids)
        cleaned_edges = []
        for index, edge in enumerate(edges, start=1):
            if edge["source"] not in known or edge["target"] not in known:
                raise ValidationError(
                    f"Edge {edge.get('id') or index} references a node that does not exist",
                    context={"source": edge["source"], "target": edge["target"]},
                )
            cleaned_edges.append({**edge, "id": edge.get("id") or f"e-{edge['source']}-{edge['target']}"})

        return {"nodes": nodes, "edges": cleaned_edges}

    # Parsing

    def _split_lines(self, text: str) -> List[Tuple[int, str]]:
        lines = []
        for raw in text.splitlines():
            expanded = raw.replace("\t", "    ")
            stripped = expanded.strip()
            if stripped:
                lines.append((len(expanded) - len(expanded.lstrip()), " ".join(stripped.split())))
        return lines

    def _find_root(self, lines: List[Tuple[int, str]]) -> Tuple[int, str]:
        for index, (_, line) in enumerate(lines):
            if len(line.split()) < 20 and not self._is_noise(line):
                label = self._normalize_label(line)
                if label:
                    return index, label
        return -1, "Central Topic"

    def _is_noise(self, line: str) -> bool:
        if len(line) > 120 or PAGE_NUMBER.match(line):
            return True
        if URL.search(line) or SYMBOLS.search(line):
            return True
        return not any(ch.isalpha() for ch in line)

    def _is_level1(self, line: str) -> bool:
        words = line.split()
        if NUMBERED_HEADING.match(line) and len(words) <= 12:
            return True
        if line.endswith(":") and len(words) <= 12:
            return True
        letters = [ch for ch in line if ch.isalpha()]
        if len(letters) >= 3 and all(ch.isupper() for ch in letters) and len(words) <= 12:
            return True
        alpha_words = [w for w in words if w[:1].isalpha()]
        if 1 < len(words) <= 12 and not line.endswith(".") and alpha_words:
            capitalized = sum(1 for w in alpha_words if w[0].isupper() or w.lower() in STOP_WORDS)
            return capitalized == len(alpha_words) and any(w[0].isupper() for w in alpha_words)
        return False

    def _is_list_item(self, indent: int, line: str) -> bool:
        return bool(BULLET.match(line) or LETTER_ITEM.match(line)) or indent >= 2

    def _is_fragment(self, line: str) -> bool:
        return len(line.split()) <= 8 and not line.endswith((".", "?", "!"))

    def _normalize_label(self, line: str) -> str:
        line = LIST_PREFIX.sub("", line, count=1)
        words = NON_WORD.sub(" ", line).replace("_", " ").split()
        words = [w.strip("'-") for w in words if w.strip("'-")][: self.MAX_LABEL_WORDS]
        return " ".join(w[:1].upper() + w[1:] for w in words)

    # Strategies

    def _rule_based(self, lines, root_index: int, root_label: str):
        nodes = [self._node("root", root_label, 0)]
        edges: List[Dict[str, Any]] = []
        seen = {root_label.lower()}
        current_parent = None
        child_counts: Counter = Counter()
        headings = 0

        for index, (indent, line) in enumerate(lines):
            if index == root_index or self._is_noise(line):
                continue
            if len(nodes) >= self.MAX_NODES:
                break

            if current_parent and (self._is_list_item(indent, line) or
                                   (not self._is_level1(line) and self._is_fragment(line))):
                level, parent = 2, current_parent
            elif self._is_level1(line):
                level, parent = 1, "root"
            else:
                continue

            label = self._normalize_label(line)
            if not label or label.lower() in seen:
                continue
            if level == 2 and child_counts[parent] >= self.MAX_CHILDREN:
                continue

            node_id = f"node-{len(nodes)}"
            nodes.append(self._node(node_id, label, level))
            edges.append(self._edge(parent, node_id))
            seen.add(label.lower())
            child_counts[parent] += 1
            if level == 1:
                current_parent = node_id
                headings += 1

        return nodes, edges, headings

    def _statistical(self, text: str, root_label: str):
        nodes = [self._node("root", root_label, 0)]
        edges: List[Dict[str, Any]] = []

        words = [w.strip("'-") for w in KEYWORD.findall(text.lower())]
        candidates = [w for w in words if len(w) >= 3 and w not in STOP_WORDS]
        if not candidates:
            return nodes, edges, 0.0

        root_words = set(root_label.lower().split())
        top = [(w, c) for w, c in Counter(candidates).most_common() if w not in root_words][: self.KEYWORD_COUNT]
        sentences = [" ".join(s.split()) for s in SENTENCE_SPLIT.split(text) if s.strip()]
        seen = {root_label.lower()}

        for keyword, _ in top:
            label = keyword[:1].upper() + keyword[1:]
            node_id = f"node-{len(nodes)}"
            nodes.append(self._node(node_id, label, 1))
            edges.append(self._edge("root", node_id))
            seen.add(label.lower())

            context = next((s for s in sentences if re.search(rf"\b{re.escape(keyword)}\b", s, re.IGNORECASE)), None)
            child_label = self._normalize_label(context) if context else ""
            if child_label and child_label.lower() not in seen:
                child_id = f"node-{len(nodes)}"
                nodes.append(self._node(child_id, child_label, 2))
                edges.append(self._edge(node_id, child_id))
                seen.add(child_label.lower())

        keyword_share = sum(count for _, count in top) / len(words)
        return nodes, edges, keyword_share

    # Layout

    def _layout(self, nodes: List[Dict[str, Any]], edges: List[Dict[str, Any]]) -> None:
        children: Dict[str, List[str]] = {}
        for edge in edges:
            children.setdefault(edge["source"], []).append(edge["target"])

        depth = {"root": 0}
        order = ["root"]
        queue = ["root"]
        while queue:
            current = queue.pop(0)
            for child in children.get(current, []):
                if child not in depth:
                    depth[child] = depth[current] + 1
                    order.append(child)
                    queue.append(child)

        rings: Dict[int, List[str]] = {}
        for node_id in order:
            rings.setdefault(depth[node_id], []).append(node_id)

        positions = {"root": (0.0, 0.0)}
        for level, members in rings.items():
            if level == 0:
                continue
            radius = level * self.RING_RADIUS
            for index, node_id in enumerate(members):
                angle = 2 * math.pi * index / len(members)
                positions[node_id] = (round(radius * math.cos(angle), 2), round(radius * math.sin(angle), 2))

        for node in nodes:
            x, y = positions.get(node["id"], (0.0, 0.0))
            node["position"] = {"x": x, "y": y}

    # Output

    def _node(self, node_id: str, label: str, level: int) -> Dict[str, Any]:
        return {
            "id": node_id,
            "type": "input" if level == 0 else "default",
            "data": {"label": label, "level": level},
            "position": {"x": 0.0, "y": 0.0},
        }

    def _edge(self, source: str, target: str) -> Dict[str, Any]:
        return {"id": f"e-{source}-{target}", "source": source, "target": target}

    def _result(self, nodes, edges, method: str, confidence: float) -> Dict[str, Any]:
        return {
            "nodes": nodes,
            "edges": edges,
            "metadata": {
                "method": method,
                "nodeCount": len(nodes),
                "edgeCount": len(edges),
                "confidence": round(confidence, 2),
                "generatedAt": datetime.now(timezone.utc).isoformat(),
            },
        }


# Global instance
mindmap_service = MindMapService()
