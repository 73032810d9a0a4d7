"""Inline search directives emitted by models."""

import re

# [SEARCH: query], 【搜索:query】 or 【搜索：query】
SEARCH_DIRECTIVE = re.compile(r"\[SEARCH:\s*([^\]\n]+?)\s*\]|【搜索[:：]([^】]+?)】")


class SearchDirectiveParser:
    """Extracts search queries from model output, in order of appearance."""

    def parse(self, text: str) -> list[str]:
        queries: list[str] = []
        for match in SEARCH_DIRECTIVE.finditer(text):
            query = (match.group(1) or match.group(2) or "").strip()
            if query:
                queries.append(query)
        return queries
