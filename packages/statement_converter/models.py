"""Data contracts exchanged at the boundaries of the converter.

Both models are frozen pydantic models whose JSON exchange names are camelCase
(``headerRowIndex``, ``accountNo``...) while Python attributes stay
snake_case. Instances are fully constructed before they reach the normalizer
or renderer; nothing mutates them afterwards.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

ABSENT: int = -1
"""Universal "field not present" sentinel for column indices."""

_INDEX_FIELDS: tuple[str, ...] = (
    "header_row_index",
    "date_column_index",
    "description_column_index",
    "debit_column_index",
    "credit_column_index",
    "balance_column_index",
    "cheque_no_column_index",
    "amount_column_index",
    "type_column_index",
)


class MappingDescriptor(BaseModel):
    """Where each logical field lives in a raw statement row.

    Every index is 0-based; ``-1`` means the column is absent. Any negative
    index (or ``null``) received at the boundary is normalized to ``-1``.
    ``is_single_amount_column`` selects between the dual debit/credit policy
    and the single signed/typed amount policy.

    Invariant violations (e.g. single-amount policy without an amount column)
    do not raise; see :meth:`warnings`. Affected output fields degrade to
    empty values during normalization.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    header_row_index: int = ABSENT
    date_column_index: int = ABSENT
    description_column_index: int = ABSENT
    debit_column_index: int = ABSENT
    credit_column_index: int = ABSENT
    balance_column_index: int = ABSENT
    cheque_no_column_index: int = ABSENT
    amount_column_index: int = ABSENT
    type_column_index: int = ABSENT
    date_format: str = ""
    is_single_amount_column: bool = False

    @field_validator(*_INDEX_FIELDS, mode="before")
    @classmethod
    def _null_index_is_absent(cls, v: Any) -> Any:
        return ABSENT if v is None else v

    @field_validator(*_INDEX_FIELDS)
    @classmethod
    def _negative_index_is_absent(cls, v: int) -> int:
        return v if v >= 0 else ABSENT

    @field_validator("date_format", mode="before")
    @classmethod
    def _null_format_is_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @classmethod
    def from_json_mapping(cls, data: Mapping[str, Any]) -> MappingDescriptor:
        """Build a descriptor from the camelCase exchange object."""

        return cls.model_validate(dict(data))

    def to_json_mapping(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)

    def with_date_format(self, date_format: str) -> MappingDescriptor:
        return self.model_copy(update={"date_format": date_format.strip()})

    @property
    def first_data_row(self) -> int:
        return max(self.header_row_index + 1, 0)

    def warnings(self) -> list[str]:
        """Return human-readable descriptions of invariant violations."""

        out: list[str] = []
        if self.date_column_index == ABSENT:
            out.append("dateColumnIndex is absent; every row will be skipped")
        if not self.date_format:
            out.append("dateFormat is empty; dates are kept verbatim")
        if self.is_single_amount_column:
            if self.amount_column_index == ABSENT:
                out.append(
                    "isSingleAmountColumn is set but amountColumnIndex is absent; "
                    "debit and credit will be empty"
                )
        elif self.debit_column_index == ABSENT and self.credit_column_index == ABSENT:
            out.append("no debit or credit column; debit and credit will be empty")
        return out


FALLBACK_MAPPING = MappingDescriptor(
    header_row_index=0,
    date_column_index=0,
    date_format="dd/MM/yyyy",
    description_column_index=1,
    debit_column_index=2,
    credit_column_index=3,
    balance_column_index=4,
    cheque_no_column_index=ABSENT,
    is_single_amount_column=False,
    amount_column_index=ABSENT,
    type_column_index=ABSENT,
)
"""Deterministic descriptor used when mapping detection is unavailable."""


class AccountDetails(BaseModel):
    """Account metadata printed in the statement header block."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    name: str = ""
    joint_holder: str = ""
    address1: str = ""
    address2: str = ""
    address3: str = ""
    address4: str = ""
    customer_id: str = ""
    ifsc: str = ""
    micr: str = ""
    nominee_reg: str = ""
    nominee_name: str = ""
    mobile: str = ""
    email: str = ""
    pan: str = ""
    ckyc: str = ""
    account_no: str = ""
    from_date: str = ""
    to_date: str = ""

    @classmethod
    def from_json_mapping(cls, data: Mapping[str, Any]) -> AccountDetails:
        return cls.model_validate(dict(data))

    def to_json_mapping(self) -> dict[str, str]:
        return self.model_dump(by_alias=True)

    @classmethod
    def sample(cls) -> AccountDetails:
        """Placeholder account used for templates and previews."""

        return cls(
            name="JOHN DOE",
            joint_holder="-",
            address1="123 MAIN STREET",
            address2="APT 4B",
            address3="METROPOLIS-10001",
            address4="STATE-COUNTRY",
            customer_id="123456789",
            ifsc="BANK0001234",
            micr="123456789",
            nominee_reg="Y",
            nominee_name="JANE DOE",
            mobile="XXXXXX1234",
            email="JOHN.DOE@EXAMPLE.COM",
            pan="ABCDE1234F",
            ckyc="XXXXXXXXXX1234",
            account_no="123456789012345",
            from_date="01-01-2024",
            to_date="31-01-2024",
        )


__all__ = ["ABSENT", "FALLBACK_MAPPING", "AccountDetails", "MappingDescriptor"]
