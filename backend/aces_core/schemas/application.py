"""
Pydantic models for one ACES fitment statement (an App element).

The identification is a tagged union: an Application carries exactly one of
BaseVehiclePattern, YearMakeModelPattern or EquipmentPattern, so one with
zero or several patterns cannot be built. Qualifiers, notes and vehicle
attributes keep their order. Text fields reject characters XML 1.0 cannot
carry, so anything that builds can be encoded.
"""

import re
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator

# Oldest VCdb year; the upper bound leaves room for future model years
MIN_YEAR = 1896
MAX_YEAR = 2100

_XML_ILLEGAL = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff]")


def _xml_safe(value: str) -> str:
    if _XML_ILLEGAL.search(value):
        raise ValueError("contains characters that are not allowed in XML")
    return value


XmlText = Annotated[str, AfterValidator(_xml_safe)]
Year = Annotated[int, Field(ge=MIN_YEAR, le=MAX_YEAR)]


class Action(str, Enum):
    ADD = "A"
    DELETE = "D"


class BaseVehiclePattern(BaseModel):
    """Identified by a VCdb BaseVehicle id."""

    model_config = ConfigDict(frozen=True)

    pattern: Literal["base_vehicle"] = "base_vehicle"
    base_vehicle_id: int = Field(gt=0)


class YearMakeModelPattern(BaseModel):
    """Identified by a year range plus VCdb make and model ids."""

    model_config = ConfigDict(frozen=True)

    pattern: Literal["year_make_model"] = "year_make_model"
    year_from: Year
    year_to: Year
    make_id: int = Field(gt=0)
    model_id: int = Field(gt=0)


class EquipmentPattern(BaseModel):
    """Identified by manufacturer, equipment model and vehicle type (ACES 4.2)."""

    model_config = ConfigDict(frozen=True)

    pattern: Literal["equipment"] = "equipment"
    mfr_id: int = Field(gt=0)
    equipment_model_id: int = Field(gt=0)
    vehicle_type_id: int = Field(gt=0)
    equipment_base_id: int | None = None
    production_start: Year | None = None
    production_end: Year | None = None


Identification = Annotated[
    Union[BaseVehiclePattern, YearMakeModelPattern, EquipmentPattern],
    Field(discriminator="pattern"),
]


class Qualifier(BaseModel):
    """Qdb qualifier with its ordered parameter values."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: int = Field(gt=0)
    text: XmlText | None = None
    params: list[XmlText] = Field(default_factory=list)

    @field_validator("text", mode="before")
    @classmethod
    def _blank_text_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class VehicleAttribute(BaseModel):
    """A vehicle refinement element such as <SubModel id="14"/>."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(pattern=r"^[A-Za-z][A-Za-z0-9]*$")  # written as the element name
    id: int = Field(gt=0)


class PartNumber(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    value: XmlText = Field(min_length=1)
    brand_aaiaid: XmlText | None = None
    sub_brand_aaiaid: XmlText | None = None


class Application(BaseModel):
    """One fitment statement tying a part to a vehicle or equipment."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: XmlText | None = None
    action: Action = Action.ADD
    validation: Literal["yes", "no"] = "yes"  # "no" skips reference cross-checks
    identification: Identification
    vehicle_attributes: list[VehicleAttribute] = Field(default_factory=list)
    quantity: int = Field(gt=0)
    part_type_id: int = Field(gt=0)
    position_id: int | None = None
    part_number: PartNumber
    mfr_label: XmlText | None = None
    qualifiers: list[Qualifier] = Field(default_factory=list)
    notes: list[XmlText] = Field(default_factory=list)
    asset_name: XmlText | None = None
    asset_item_order: int | None = None
    display_order: int | None = None

    @field_validator("part_number", mode="before")
    @classmethod
    def _part_number_from_string(cls, v):
        if isinstance(v, str):
            return {"value": v}
        return v

    @field_validator("validation", mode="before")
    @classmethod
    def _lowercase_validation(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    @property
    def should_validate(self) -> bool:
        return self.validation == "yes"


def build_identification(
    base_vehicle_id: int | None = None,
    year_from: int | None = None,
    year_to: int | None = None,
    make_id: int | None = None,
    model_id: int | None = None,
    mfr_id: int | None = None,
    equipment_model_id: int | None = None,
    vehicle_type_id: int | None = None,
    equipment_base_id: int | None = None,
    production_start: int | None = None,
    production_end: int | None = None,
) -> BaseVehiclePattern | YearMakeModelPattern | EquipmentPattern:
    """
    Pick the identification pattern from loose optional fields.
    Raises ValueError when no pattern or more than one pattern is populated.
    """
    present = []
    if base_vehicle_id is not None:
        present.append("base_vehicle")
    if any(v is not None for v in (year_from, year_to, make_id, model_id)):
        present.append("year_make_model")
    if any(v is not None for v in (mfr_id, equipment_model_id, vehicle_type_id)):
        present.append("equipment")

    if not present:
        raise ValueError("Application has no vehicle identification")
    if len(present) > 1:
        raise ValueError(f"Application has more than one identification: {', '.join(present)}")

    if present[0] == "base_vehicle":
        return BaseVehiclePattern(base_vehicle_id=base_vehicle_id)
    if present[0] == "year_make_model":
        if year_from is None and year_to is not None:
            year_from = year_to
        if year_to is None and year_from is not None:
            year_to = year_from
        return YearMakeModelPattern(year_from=year_from, year_to=year_to, make_id=make_id, model_id=model_id)
    return EquipmentPattern(
        mfr_id=mfr_id,
        equipment_model_id=equipment_model_id,
        vehicle_type_id=vehicle_type_id,
        equipment_base_id=equipment_base_id,
        production_start=production_start,
        production_end=production_end,
    )
