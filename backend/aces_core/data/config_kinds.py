"""
Configuration kinds and how each one is hydrated from VCdb.

Every kind knows:
- the reference table holding its rows and that table's id column
- how it hangs off a Vehicle row: a VehicleTo* link table, or a column on
  the Vehicle row itself (subModel)
- how to flatten a row into snake_case attributes, following nested
  references (EngineConfig -> EngineBase, FuelType, ...)
- how to build a display name

Foreign keys that do not resolve render a fallback label ("Fuel Type 7")
instead of failing; a missing key renders as None.
"""

from dataclasses import dataclass, field
from typing import Callable

from aces_core.data.reference_store import VCDB, ReferenceDataStore, Row, ref_key


@dataclass
class Configuration:
    """One hydrated configuration row linked to a canonical vehicle."""
    kind: str
    config_id: str
    display_name: str
    attributes: dict[str, str | None] = field(default_factory=dict)
    references: dict[str, str | None] = field(default_factory=dict)


@dataclass(frozen=True)
class ConfigKind:
    name: str
    label: str
    table: str
    id_column: str
    flatten: Callable[[ReferenceDataStore, Row], tuple[dict, dict]]
    describe: Callable[[str, dict], str]
    link_table: str | None = None
    variant_column: str | None = None


def _lookup(store: ReferenceDataStore, table: str, key, column: str, label: str) -> str | None:
    """Name column of a referenced row, or a fallback label if the row is missing."""
    k = ref_key(key)
    if k is None:
        return None
    value = store.lookup_value(VCDB, table, k, column)
    return value if value is not None else f"{label} {k}"


def _refs(row: Row, *columns: str) -> dict[str, str | None]:
    return {c: ref_key(row.get(c)) for c in columns}


def _or_unknown(value: str | None, what: str = "") -> str:
    if value:
        return value
    return f"Unknown {what}".strip()


# ─── Engine ──────────────────────────────────────────────────────────

ENGINE_REFERENCES = (
    "EngineBaseID", "EngineDesignationID", "EngineVINID", "ValvesID",
    "FuelDeliveryConfigID", "AspirationID", "CylinderHeadTypeID", "FuelTypeID",
    "IgnitionSystemTypeID", "EngineMfrID", "EngineVersionID", "PowerOutputID",
)


def _flatten_engine(store: ReferenceDataStore, row: Row):
    refs = _refs(row, "EngineConfigID", *ENGINE_REFERENCES)
    base = store.get_row(VCDB, "EngineBase", refs["EngineBaseID"]) or {}
    power = store.get_row(VCDB, "PowerOutput", refs["PowerOutputID"]) or {}
    delivery = store.get_row(VCDB, "FuelDeliveryConfig", refs["FuelDeliveryConfigID"]) or {}

    attrs = {
        "liter": base.get("Liter"),
        "cc": base.get("CC"),
        "cid": base.get("CID"),
        "cylinders": base.get("Cylinders"),
        "block_type": base.get("BlockType"),
        "bore_in": base.get("EngBoreIn"),
        "bore_metric": base.get("EngBoreMetric"),
        "stroke_in": base.get("EngStrokeIn"),
        "stroke_metric": base.get("EngStrokeMetric"),
        "fuel_type": _lookup(store, "FuelType", refs["FuelTypeID"], "FuelTypeName", "Fuel Type"),
        "aspiration": _lookup(store, "Aspiration", refs["AspirationID"], "AspirationName", "Aspiration"),
        "cylinder_head_type": _lookup(
            store, "CylinderHeadType", refs["CylinderHeadTypeID"], "CylinderHeadTypeName", "Cylinder Head Type"
        ),
        "valves": _lookup(store, "Valves", refs["ValvesID"], "ValvesPerEngine", "Valves"),
        "ignition_system_type": _lookup(
            store, "IgnitionSystemType", refs["IgnitionSystemTypeID"], "IgnitionSystemTypeName", "Ignition System"
        ),
        "horse_power": power.get("HorsePower"),
        "kilowatt_power": power.get("KilowattPower"),
        "engine_mfr": _lookup(store, "Mfr", refs["EngineMfrID"], "MfrName", "Mfr"),
        "engine_vin": _lookup(store, "EngineVIN", refs["EngineVINID"], "EngineVINName", "Engine VIN"),
        "engine_designation": _lookup(
            store, "EngineDesignation", refs["EngineDesignationID"], "EngineDesignationName", "Engine Designation"
        ),
        "engine_version": _lookup(store, "EngineVersion", refs["EngineVersionID"], "EngineVersion", "Engine Version"),
        "fuel_delivery_type": _lookup(
            store, "FuelDeliveryType", delivery.get("FuelDeliveryTypeID"), "FuelDeliveryTypeName", "Fuel Delivery"
        ),
    }
    return attrs, refs


def _describe_engine(config_id: str, attrs: dict) -> str:
    if not attrs.get("liter"):
        return f"Engine {config_id}"
    layout = f"{attrs.get('block_type') or ''}{attrs.get('cylinders') or '?'}"
    parts = [layout, f"{attrs['liter']}L"]
    if attrs.get("aspiration"):
        parts.append(attrs["aspiration"])
    parts.append(_or_unknown(attrs.get("fuel_type"), "Fuel"))
    return " ".join(parts)


# ─── Drivetrain ──────────────────────────────────────────────────────


def _flatten_transmission(store: ReferenceDataStore, row: Row):
    refs = _refs(
        row, "TransmissionID", "TransmissionBaseID", "TransmissionMfrCodeID",
        "TransmissionElecControlledID", "TransmissionMfrID",
    )
    base = store.get_row(VCDB, "TransmissionBase", refs["TransmissionBaseID"]) or {}
    refs.update(_refs(base, "TransmissionTypeID", "TransmissionNumSpeedsID", "TransmissionControlTypeID"))
    attrs = {
        "transmission_type": _lookup(
            store, "TransmissionType", refs["TransmissionTypeID"], "TransmissionTypeName", "Transmission Type"
        ),
        "num_speeds": _lookup(
            store, "TransmissionNumSpeeds", refs["TransmissionNumSpeedsID"], "TransmissionNumSpeeds", "Speeds"
        ),
        "control_type": _lookup(
            store, "TransmissionControlType", refs["TransmissionControlTypeID"],
            "TransmissionControlTypeName", "Control Type",
        ),
        "mfr_code": _lookup(
            store, "TransmissionMfrCode", refs["TransmissionMfrCodeID"], "TransmissionMfrCode", "Mfr Code"
        ),
        "elec_controlled": _lookup(
            store, "ElecControlled", refs["TransmissionElecControlledID"], "ElecControlled", "Elec Controlled"
        ),
        "transmission_mfr": _lookup(store, "Mfr", refs["TransmissionMfrID"], "MfrName", "Mfr"),
    }
    return attrs, refs


def _describe_transmission(config_id: str, attrs: dict) -> str:
    speeds = attrs.get("num_speeds") or "?"
    kind = attrs.get("control_type") or attrs.get("transmission_type")
    return f"{speeds}-Speed {_or_unknown(kind)}"


def _flatten_drive_type(store: ReferenceDataStore, row: Row):
    return {"drive_type": row.get("DriveTypeName")}, _refs(row, "DriveTypeID")


# ─── Chassis ─────────────────────────────────────────────────────────


def _flatten_brakes(store: ReferenceDataStore, row: Row):
    refs = _refs(row, "BrakeConfigID", "FrontBrakeTypeID", "RearBrakeTypeID", "BrakeSystemID", "BrakeABSID")
    attrs = {
        "front_brake_type": _lookup(store, "BrakeType", refs["FrontBrakeTypeID"], "BrakeTypeName", "Brake Type"),
        "rear_brake_type": _lookup(store, "BrakeType", refs["RearBrakeTypeID"], "BrakeTypeName", "Brake Type"),
        "brake_system": _lookup(store, "BrakeSystem", refs["BrakeSystemID"], "BrakeSystemName", "Brake System"),
        "brake_abs": _lookup(store, "BrakeABS", refs["BrakeABSID"], "BrakeABSName", "Brake ABS"),
    }
    return attrs, refs


def _describe_brakes(config_id: str, attrs: dict) -> str:
    front = _or_unknown(attrs.get("front_brake_type"))
    rear = _or_unknown(attrs.get("rear_brake_type"))
    return f"Front: {front} / Rear: {rear}"


def _flatten_springs(store: ReferenceDataStore, row: Row):
    refs = _refs(row, "SpringTypeConfigID", "FrontSpringTypeID", "RearSpringTypeID")
    attrs = {
        "front_spring_type": _lookup(store, "SpringType", refs["FrontSpringTypeID"], "SpringTypeName", "Spring Type"),
        "rear_spring_type": _lookup(store, "SpringType", refs["RearSpringTypeID"], "SpringTypeName", "Spring Type"),
    }
    return attrs, refs


def _describe_springs(config_id: str, attrs: dict) -> str:
    front = _or_unknown(attrs.get("front_spring_type"))
    rear = _or_unknown(attrs.get("rear_spring_type"))
    return f"Front: {front} / Rear: {rear}"


def _flatten_steering(store: ReferenceDataStore, row: Row):
    refs = _refs(row, "SteeringConfigID", "SteeringTypeID", "SteeringSystemID")
    attrs = {
        "steering_type": _lookup(store, "SteeringType", refs["SteeringTypeID"], "SteeringTypeName", "Steering Type"),
        "steering_system": _lookup(
            store, "SteeringSystem", refs["SteeringSystemID"], "SteeringSystemName", "Steering System"
        ),
    }
    return attrs, refs


def _describe_steering(config_id: str, attrs: dict) -> str:
    parts = [p for p in (attrs.get("steering_type"), attrs.get("steering_system")) if p]
    return " ".join(parts) or f"Steering {config_id}"


def _flatten_wheelbase(store: ReferenceDataStore, row: Row):
    attrs = {"wheel_base": row.get("WheelBase"), "wheel_base_metric": row.get("WheelBaseMetric")}
    return attrs, _refs(row, "WheelBaseID")


def _describe_wheelbase(config_id: str, attrs: dict) -> str:
    if not attrs.get("wheel_base"):
        return f"Wheelbase {config_id}"
    return f'{attrs["wheel_base"]}" Wheelbase'


# ─── Body ────────────────────────────────────────────────────────────


def _flatten_body(store: ReferenceDataStore, row: Row):
    refs = _refs(row, "BodyStyleConfigID", "BodyNumDoorsID", "BodyTypeID")
    attrs = {
        "body_num_doors": _lookup(store, "BodyNumDoors", refs["BodyNumDoorsID"], "BodyNumDoors", "Doors"),
        "body_type": _lookup(store, "BodyType", refs["BodyTypeID"], "BodyTypeName", "Body Type"),
    }
    return attrs, refs


def _describe_body(config_id: str, attrs: dict) -> str:
    body = _or_unknown(attrs.get("body_type"), "Body")
    if attrs.get("body_num_doors"):
        return f"{attrs['body_num_doors']}-Door {body}"
    return body


def _flatten_bed(store: ReferenceDataStore, row: Row):
    refs = _refs(row, "BedConfigID", "BedLengthID", "BedTypeID")
    length = store.get_row(VCDB, "BedLength", refs["BedLengthID"]) or {}
    attrs = {
        "bed_length": length.get("BedLength"),
        "bed_length_metric": length.get("BedLengthMetric"),
        "bed_type": _lookup(store, "BedType", refs["BedTypeID"], "BedTypeName", "Bed Type"),
    }
    return attrs, refs


def _describe_bed(config_id: str, attrs: dict) -> str:
    bed = _or_unknown(attrs.get("bed_type"), "Bed")
    if attrs.get("bed_length"):
        return f'{attrs["bed_length"]}" {bed}'
    return bed


def _flatten_mfr_body_code(store: ReferenceDataStore, row: Row):
    return {"mfr_body_code": row.get("MfrBodyCodeName")}, _refs(row, "MfrBodyCodeID")


def _flatten_submodel(store: ReferenceDataStore, row: Row):
    return {"sub_model": row.get("SubModelName")}, _refs(row, "SubModelID")


def _named(label: str, attribute: str) -> Callable[[str, dict], str]:
    def describe(config_id: str, attrs: dict) -> str:
        return attrs.get(attribute) or f"{label} {config_id}"
    return describe


CONFIG_KINDS: dict[str, ConfigKind] = {
    k.name: k
    for k in (
        ConfigKind("engineConfig", "Engine", "EngineConfig", "EngineConfigID",
                   _flatten_engine, _describe_engine, link_table="VehicleToEngineConfig"),
        ConfigKind("transmission", "Transmission", "Transmission", "TransmissionID",
                   _flatten_transmission, _describe_transmission, link_table="VehicleToTransmission"),
        ConfigKind("brakeConfig", "Brakes", "BrakeConfig", "BrakeConfigID",
                   _flatten_brakes, _describe_brakes, link_table="VehicleToBrakeConfig"),
        ConfigKind("bodyConfig", "Body", "BodyStyleConfig", "BodyStyleConfigID",
                   _flatten_body, _describe_body, link_table="VehicleToBodyStyleConfig"),
        ConfigKind("driveType", "Drive Type", "DriveType", "DriveTypeID",
                   _flatten_drive_type, _named("Drive Type", "drive_type"), link_table="VehicleToDriveType"),
        ConfigKind("springConfig", "Springs", "SpringTypeConfig", "SpringTypeConfigID",
                   _flatten_springs, _describe_springs, link_table="VehicleToSpringTypeConfig"),
        ConfigKind("steeringConfig", "Steering", "SteeringConfig", "SteeringConfigID",
                   _flatten_steering, _describe_steering, link_table="VehicleToSteeringConfig"),
        ConfigKind("wheelbase", "Wheelbase", "WheelBase", "WheelBaseID",
                   _flatten_wheelbase, _describe_wheelbase, link_table="VehicleToWheelbase"),
        ConfigKind("bedConfig", "Bed", "BedConfig", "BedConfigID",
                   _flatten_bed, _describe_bed, link_table="VehicleToBedConfig"),
        ConfigKind("mfrBodyCode", "Mfr Body Code", "MfrBodyCode", "MfrBodyCodeID",
                   _flatten_mfr_body_code, _named("Mfr Body Code", "mfr_body_code"),
                   link_table="VehicleToMfrBodyCode"),
        ConfigKind("subModel", "SubModel", "SubModel", "SubModelID",
                   _flatten_submodel, _named("SubModel", "sub_model"), variant_column="SubmodelID"),
    )
}


def get_kind(name: str) -> ConfigKind:
    """Look up a kind by name; raises ValueError for unknown kinds."""
    kind = CONFIG_KINDS.get(name)
    if kind is None:
        raise ValueError(f"Unknown configuration kind: {name}")
    return kind


def hydrate(store: ReferenceDataStore, kind: ConfigKind, config_id: str) -> Configuration:
    """Build a Configuration for an id; an id with no row keeps a fallback name."""
    row = store.get_row(VCDB, kind.table, config_id)
    if row is None:
        return Configuration(
            kind=kind.name,
            config_id=config_id,
            display_name=f"{kind.label} {config_id}",
            references={kind.id_column: config_id},
        )
    attrs, refs = kind.flatten(store, row)
    refs[kind.id_column] = config_id
    return Configuration(
        kind=kind.name,
        config_id=config_id,
        display_name=kind.describe(config_id, attrs),
        attributes=attrs,
        references=refs,
    )


# ─── Vehicle attribute elements ──────────────────────────────────────


@dataclass(frozen=True)
class VehicleAttributeRef:
    """Where an App vehicle-attribute element's id lives in VCdb."""
    table: str
    kind: str | None = None
    reference: str | None = None


# Element name -> reference table, and for linked checks the kind plus the
# reference column that carries the same id on a hydrated Configuration.
VEHICLE_ATTRIBUTES: dict[str, VehicleAttributeRef] = {
    "SubModel": VehicleAttributeRef("SubModel", "subModel", "SubModelID"),
    "EngineBase": VehicleAttributeRef("EngineBase", "engineConfig", "EngineBaseID"),
    "EngineBlock": VehicleAttributeRef("EngineBlock"),
    "EngineVIN": VehicleAttributeRef("EngineVIN", "engineConfig", "EngineVINID"),
    "Aspiration": VehicleAttributeRef("Aspiration", "engineConfig", "AspirationID"),
    "FuelType": VehicleAttributeRef("FuelType", "engineConfig", "FuelTypeID"),
    "EngineDesignation": VehicleAttributeRef("EngineDesignation", "engineConfig", "EngineDesignationID"),
    "EngineVersion": VehicleAttributeRef("EngineVersion", "engineConfig", "EngineVersionID"),
    "EngineMfr": VehicleAttributeRef("Mfr", "engineConfig", "EngineMfrID"),
    "DriveType": VehicleAttributeRef("DriveType", "driveType", "DriveTypeID"),
    "BodyType": VehicleAttributeRef("BodyType", "bodyConfig", "BodyTypeID"),
    "BodyNumDoors": VehicleAttributeRef("BodyNumDoors", "bodyConfig", "BodyNumDoorsID"),
    "BrakeSystem": VehicleAttributeRef("BrakeSystem", "brakeConfig", "BrakeSystemID"),
    "BrakeABS": VehicleAttributeRef("BrakeABS", "brakeConfig", "BrakeABSID"),
    "FrontBrakeType": VehicleAttributeRef("BrakeType", "brakeConfig", "FrontBrakeTypeID"),
    "RearBrakeType": VehicleAttributeRef("BrakeType", "brakeConfig", "RearBrakeTypeID"),
    "SteeringType": VehicleAttributeRef("SteeringType", "steeringConfig", "SteeringTypeID"),
    "SteeringSystem": VehicleAttributeRef("SteeringSystem", "steeringConfig", "SteeringSystemID"),
    "FrontSpringType": VehicleAttributeRef("SpringType", "springConfig", "FrontSpringTypeID"),
    "RearSpringType": VehicleAttributeRef("SpringType", "springConfig", "RearSpringTypeID"),
    "BedType": VehicleAttributeRef("BedType", "bedConfig", "BedTypeID"),
    "BedLength": VehicleAttributeRef("BedLength", "bedConfig", "BedLengthID"),
    "WheelBase": VehicleAttributeRef("WheelBase", "wheelbase", "WheelBaseID"),
    "MfrBodyCode": VehicleAttributeRef("MfrBodyCode", "mfrBodyCode", "MfrBodyCodeID"),
    "TransmissionType": VehicleAttributeRef("TransmissionType", "transmission", "TransmissionTypeID"),
    "TransmissionNumSpeeds": VehicleAttributeRef("TransmissionNumSpeeds", "transmission", "TransmissionNumSpeedsID"),
    "TransmissionControlType": VehicleAttributeRef(
        "TransmissionControlType", "transmission", "TransmissionControlTypeID"
    ),
}


def attribute_names(kind: ConfigKind) -> tuple[str, ...]:
    """Attribute keys a kind's flatten produces, independent of any data."""
    attrs, _ = kind.flatten(ReferenceDataStore({}), {})
    return tuple(attrs)
