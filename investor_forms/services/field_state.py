"""
Field-level edits of a form's draft.

Three kinds of fields:

- scalars (``name``, ``website`` ...): replaced wholesale, no validation
  until submit;
- tag sets (``business_model``, ``sector_interested``): toggled or removed by
  value, members unique and drawn from the fixed vocabulary;
- repeating entries (``portfolio_companies``): appended, removed by position,
  edited one sub-field at a time.

Field names are accepted in snake_case or the remote API's camelCase.
Every operation touches exactly one field (and, for entries, one entry).
"""

import logging
from typing import TYPE_CHECKING, Dict, List

from pydantic.alias_generators import to_camel

from investor_forms.core.exceptions import BusinessRuleViolation
from investor_forms.models.investor import (
    ENTRY_TEXT_FIELDS,
    REPEATING_FIELDS,
    SCALAR_FIELDS,
    SET_FIELDS,
    TAG_VOCABULARIES,
    ImageSource,
    InvestorDraft,
    PortfolioEntry,
)

if TYPE_CHECKING:
    from investor_forms.services.forms import InvestorForm

logger = logging.getLogger(__name__)

_ALL_FIELDS = SCALAR_FIELDS + SET_FIELDS + REPEATING_FIELDS
_CANONICAL: Dict[str, str] = {name: name for name in _ALL_FIELDS}
_CANONICAL.update({to_camel(name): name for name in _ALL_FIELDS})


def canonical_field(field: str, allowed: tuple, kind: str) -> str:
    """Resolve a snake_case or camelCase field name, rejecting anything not in ``allowed``."""
    name = _CANONICAL.get(field)
    if name is None or name not in allowed:
        raise BusinessRuleViolation(
            f"'{field}' is not a {kind} field",
            details={"allowed": list(allowed)},
        )
    return name


class FieldStateManager:
    """Applies user edits to the draft owned by ``form``."""

    def __init__(self, form: "InvestorForm"):
        self._form = form

    @property
    def draft(self) -> InvestorDraft:
        # Read through the form: update forms replace their draft once on load.
        return self._form.draft

    # ── Scalars ──

    def set_scalar(self, field: str, value: str) -> None:
        name = canonical_field(field, SCALAR_FIELDS, "scalar")
        setattr(self.draft, name, value)

    # ── Tag sets ──

    def _tags(self, field: str) -> tuple:
        name = canonical_field(field, SET_FIELDS, "tag")
        return name, getattr(self.draft, name)

    def toggle_set_member(self, field: str, value: str) -> List[str]:
        """Remove ``value`` if selected, append it otherwise. Returns the new selection."""
        name, members = self._tags(field)
        if value in members:
            members.remove(value)
        else:
            vocabulary = TAG_VOCABULARIES[name]
            if value not in vocabulary:
                raise BusinessRuleViolation(
                    f"'{value}' is not a valid option for {name}",
                    details={"allowed": list(vocabulary)},
                )
            members.append(value)
        return list(members)

    def remove_set_member(self, field: str, value: str) -> List[str]:
        """Deselect ``value``; a no-op if it is not selected."""
        name, members = self._tags(field)
        if value in members:
            members.remove(value)
        return list(members)

    # ── Repeating entries ──

    def _entries(self, field: str) -> List[PortfolioEntry]:
        name = canonical_field(field, REPEATING_FIELDS, "repeating")
        return getattr(self.draft, name)

    def entry(self, field: str, index: int) -> PortfolioEntry:
        """Return the entry at ``index``; out-of-range indexes raise 422."""
        entries = self._entries(field)
        if not 0 <= index < len(entries):
            raise BusinessRuleViolation(
                f"No entry at index {index} (the form has {len(entries)})"
            )
        return entries[index]

    def add_repeating_entry(self, field: str = "portfolio_companies") -> int:
        """Append a blank entry; returns its index."""
        entries = self._entries(field)
        entries.append(PortfolioEntry())
        return len(entries) - 1

    def remove_repeating_entry(self, field: str, index: int) -> None:
        self.entry(field, index)
        del self._entries(field)[index]
        logger.debug(
            "Removed entry %d of %s", index, field, extra={"form_id": self._form.id}
        )

    def set_repeating_entry_field(
        self, field: str, index: int, subfield: str, value: str
    ) -> None:
        if subfield not in ENTRY_TEXT_FIELDS:
            raise BusinessRuleViolation(
                f"'{subfield}' cannot be edited as text; "
                "logos are set through their image slot",
                details={"allowed": list(ENTRY_TEXT_FIELDS)},
            )
        setattr(self.entry(field, index), subfield, value)

    def set_repeating_entry_logo_source(
        self, field: str, index: int, mode: ImageSource
    ) -> None:
        """Switch one entry's logo mode, clearing that logo's value and preview."""
        self.entry(field, index).logo.reset(ImageSource(mode))
