"""Draft domain models edited by the investor forms."""

from investor_forms.models.investor import ImageSlot, InvestorDraft, PortfolioEntry  # noqa: F401
