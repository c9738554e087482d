"""
Section builder.

Accumulates non-empty sections from candidate (key, value) pairs.
Blank values are trimmed away and empty sections are silently dropped,
so a builder never produces a Field or Section that violates the model
invariants.

A builder is owned by a single run and is not thread-safe.
"""

from typing import Iterable, List, Optional, Sequence, Tuple

from .models import Field, Section


class SectionBuilder:
    """Ordered accumulator of report sections."""

    def __init__(self, sections: Iterable[Section] = ()):
        self._sections: List[Section] = []
        self.extend(sections)

    @staticmethod
    def fields(pairs: Iterable[Tuple[str, Optional[str]]]) -> List[Field]:
        """
        Materialize fields from candidate pairs.

        A pair yields a Field only when its value is present and non-empty
        after trimming leading/trailing whitespace. Order is preserved.

        Args:
            pairs: (key, value) candidates; value may be None

        Returns:
            List of Field with trimmed values
        """
        result: List[Field] = []
        for key, value in pairs:
            if value is None:
                continue
            trimmed = value.strip()
            if not trimmed:
                continue
            result.append(Field(key=key, value=trimmed))
        return result

    def append_section(self, title: str, icon: str, fields: Sequence[Field]) -> None:
        """Append a section, or do nothing when fields is empty."""
        if not fields:
            return
        self._sections.append(Section(title=title, icon=icon, fields=tuple(fields)))

    def extend(self, sections: Iterable[Section]) -> None:
        for section in sections:
            self.append_section(section.title, section.icon, section.fields)

    @property
    def sections(self) -> Tuple[Section, ...]:
        return tuple(self._sections)

    def __len__(self) -> int:
        return len(self._sections)
