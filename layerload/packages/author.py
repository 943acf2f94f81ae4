# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Author/maintainer/contributor records.

Descriptors name people as free text of the shape `Name (url) <email>` where
each component is optional and may appear in any order, or as a mapping with
`name`/`url`/`email` keys. Free text that does not parse is kept whole as
the name.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from lark import Lark, Transformer
from lark.exceptions import LarkError

from layerload.errors import DescriptorError

logger = logging.getLogger(__name__)

_GRAMMAR_PATH = Path(__file__).with_name("author.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text()


@dataclass(frozen=True)
class Author:
	name: str | None = None
	url: str | None = None
	email: str | None = None

	def __str__(self) -> str:
		parts = [
			self.name,
			f"({self.url})" if self.url else None,
			f"<{self.email}>" if self.email else None,
		]
		return " ".join(p for p in parts if p)


class _AuthorTransformer(Transformer):
	def start(self, items: list[Any]) -> Author:
		fields: dict[str, str | None] = {}
		for key, value in items:
			# First of each component wins.
			if fields.get(key) is None:
				fields[key] = value
		return Author(**fields)

	def name(self, items: list[Any]) -> tuple[str, str | None]:
		return ("name", str(items[0]).strip() or None)

	def url(self, items: list[Any]) -> tuple[str, str | None]:
		return ("url", str(items[0])[1:-1] or None)

	def email(self, items: list[Any]) -> tuple[str, str | None]:
		return ("email", str(items[0])[1:-1] or None)


_AUTHOR_PARSER = Lark(_GRAMMAR_SRC, parser="lalr", start="start")


def parse_author(value: object, *, package: str | None = None) -> Author:
	"""
	Parse one author-like descriptor value.

	Strings go through the author grammar; mappings are read field by field.
	Anything else is rejected with `DescriptorError`.
	"""
	if isinstance(value, Author):
		return value
	if isinstance(value, str):
		try:
			tree = _AUTHOR_PARSER.parse(value)
		except LarkError as err:
			logger.warning("malformed author string %r in package %s: %s", value, package, err)
			return Author(name=value.strip() or None)
		return _AuthorTransformer().transform(tree)
	if isinstance(value, dict):
		fields: dict[str, str | None] = {}
		for key in ("name", "url", "email"):
			item = value.get(key)
			if item is not None and not isinstance(item, str):
				raise DescriptorError(f"author field '{key}' must be a string", package=package)
			fields[key] = item or None
		return Author(**fields)
	raise DescriptorError(f"author must be a string or an object, got {type(value).__name__}", package=package)
