"""Enumerations for the vaccine schedule check."""

from __future__ import annotations

from enum import Enum


class WindowStatus(Enum):
    """Due-window status of a scheduled vaccine dose relative to "now".

    Attributes
    ----------
    OVERDUE : str
        Scheduled instant is in the past.
    NEEDS_ATTENTION : str
        Due now or within the needs-attention window (14 days by default).
    UPCOMING : str
        Due after the needs-attention window but within the upcoming window
        (30 days by default).
    CURRENT : str
        Due beyond the upcoming window.
    UNKNOWN : str
        Scheduled-for timestamp is absent or unparseable.
    """

    OVERDUE = "overdue"
    NEEDS_ATTENTION = "needsAttention"
    UPCOMING = "upcoming"
    CURRENT = "current"
    UNKNOWN = "unknown"

    @classmethod
    def from_string(cls, value: str | None) -> "WindowStatus":
        """Convert a status string to WindowStatus.

        Parameters
        ----------
        value : str | None
            Status name as it appears in payloads ('overdue', 'needsAttention',
            ...). None maps to UNKNOWN.

        Returns
        -------
        WindowStatus
            Matching status.

        Raises
        ------
        ValueError
            If value is not a valid status name.
        """
        if value is None:
            return cls.UNKNOWN

        for status in cls:
            if status.value.lower() == value.lower():
                return status

        raise ValueError(
            f"Unknown window status: {value}. "
            f"Valid options: {', '.join(s.value for s in cls)}"
        )

    @classmethod
    def bucket_order(cls) -> tuple["WindowStatus", ...]:
        """Statuses in report order, the order buckets are listed in."""
        return (
            cls.OVERDUE,
            cls.NEEDS_ATTENTION,
            cls.UPCOMING,
            cls.CURRENT,
            cls.UNKNOWN,
        )


class VaccineFamily(Enum):
    """Coarse grouping of a vaccine product by name."""

    RABIES = "rabies"
    DHPP_DAPP = "dhpp_dapp"
    BORDETELLA = "bordetella"
    OTHER = "other"

    @classmethod
    def from_string(cls, value: str | None) -> "VaccineFamily":
        """Convert a family tag to VaccineFamily.

        Raises
        ------
        ValueError
            If value is not a valid family tag.
        """
        if value is None:
            return cls.OTHER

        value_lower = value.lower()
        for family in cls:
            if family.value == value_lower:
                return family

        raise ValueError(
            f"Unknown vaccine family: {value}. "
            f"Valid options: {', '.join(f.value for f in cls)}"
        )

    @classmethod
    def core(cls) -> tuple["VaccineFamily", ...]:
        """The three families rolled up individually in the report."""
        return (cls.RABIES, cls.DHPP_DAPP, cls.BORDETELLA)

    @property
    def label(self) -> str:
        """Display label used in report headings."""
        return _FAMILY_LABELS[self]


_FAMILY_LABELS = {
    VaccineFamily.RABIES: "Rabies",
    VaccineFamily.DHPP_DAPP: "DHPP/DAPP",
    VaccineFamily.BORDETELLA: "Bordetella",
    VaccineFamily.OTHER: "Other",
}


class DisplayStatus(Enum):
    """Status shown for a family rollup.

    Mirrors WindowStatus for rollups that have a next-due record, and adds
    NONE for families with nothing on file.
    """

    OVERDUE = "overdue"
    NEEDS_ATTENTION = "needsAttention"
    UPCOMING = "upcoming"
    CURRENT = "current"
    UNKNOWN = "unknown"
    NONE = "none"

    @classmethod
    def from_window(cls, status: WindowStatus) -> "DisplayStatus":
        """Map a window status onto the display status of the same name."""
        return cls(status.value)
