"""
Shared fixtures for ACES core tests.

The reference fixture is a small, fully in-memory slice of VCdb/PCdb/Qdb:
- 2015 Ford F-150 (BaseVehicle 100) with XLT and Lariat variants
- 2015 Ford Mustang (102) with two 2.0L engines (CC 1998 and 1999)
- two 2015 GMC "Sierra 1500" models (200 SLE, 201 Denali) for ambiguity
- 2014 Land Rover Range Rover (300) for multi-word makes
- John Deere 5075E tractor for equipment applications
"""
import os
import sys

import pytest

# Ensure the backend package is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from aces_core.data.reference_store import ReferenceDataStore  # noqa: E402
from aces_core.schemas.application import Application  # noqa: E402


def _rows(columns: str, *values) -> list[dict]:
    names = columns.split()
    return [dict(zip(names, [None if v is None else str(v) for v in row])) for row in values]


def reference_tables() -> dict:
    vcdb = {
        "Make": _rows("MakeID MakeName", (1, "Ford"), (2, "GMC"), (3, "Toyota"), (4, "Land Rover")),
        "Model": _rows(
            "ModelID ModelName VehicleTypeID",
            (10, "F-150", 5),
            (11, "Mustang", 5),
            (20, "Sierra 1500", 5),
            (21, "Sierra 1500", 5),
            (30, "Range Rover", 5),
        ),
        "SubModel": _rows(
            "SubModelID SubModelName", (1, "XLT"), (2, "Lariat"), (3, "SLE"), (4, "Denali"), (5, "HSE")
        ),
        "VehicleType": _rows("VehicleTypeID VehicleTypeName", (5, "Truck"), (2195, "Tractor")),
        "BaseVehicle": _rows(
            "BaseVehicleID YearID MakeID ModelID",
            (100, 2015, 1, 10),
            (101, 2016, 1, 10),
            (102, 2015, 1, 11),
            (200, 2015, 2, 20),
            (201, 2015, 2, 21),
            (300, 2014, 4, 30),
        ),
        "Vehicle": _rows(
            "VehicleID BaseVehicleID SubmodelID",
            (1000, 100, 1),
            (1001, 100, 2),
            (1002, 101, 1),
            (1003, 102, 1),
            (2000, 200, 3),
            (2001, 201, 4),
            (3000, 300, 5),
        ),
        "EngineBase": _rows(
            "EngineBaseID Liter CC CID Cylinders BlockType EngBoreIn EngBoreMetric EngStrokeIn EngStrokeMetric",
            (501, "2.0", "1998", "122", "4", "L", "3.44", "87.5", "3.27", "83.1"),
            (502, "3.5", "3496", "213", "6", "V", "3.64", "92.5", "3.41", "86.6"),
            (503, "5.0", "4951", "302", "8", "V", "3.63", "92.2", "3.65", "92.7"),
            (504, "2.0", "1999", "122", "4", "L", "3.44", "87.5", "3.27", "83.2"),
        ),
        "FuelType": _rows("FuelTypeID FuelTypeName", (5, "GAS"), (6, "DIESEL")),
        "Aspiration": _rows("AspirationID AspirationName", (5, "Naturally Aspirated"), (6, "Turbocharged")),
        "EngineVIN": _rows("EngineVINID EngineVINName", (10, "V"), (11, "F")),
        "PowerOutput": _rows("PowerOutputID HorsePower KilowattPower", (1, "365", "272"), (2, "395", "295")),
        "EngineConfig": _rows(
            "EngineConfigID EngineBaseID FuelTypeID AspirationID EngineVINID PowerOutputID",
            (601, 502, 5, 6, 10, 1),
            (602, 503, 5, 5, 11, 2),
            (603, 501, 5, 6, None, None),
            (604, 999, 77, None, None, None),
            (605, 504, 5, 6, None, None),
        ),
        "VehicleToEngineConfig": _rows(
            "VehicleToEngineConfigID VehicleID EngineConfigID",
            (1, 1000, 601),
            (2, 1001, 601),
            (3, 1001, 602),
            (4, 1003, 603),
            (5, 1002, 604),
            (6, 1003, 605),
        ),
        "TransmissionType": _rows("TransmissionTypeID TransmissionTypeName", (2, "Automatic")),
        "TransmissionNumSpeeds": _rows("TransmissionNumSpeedsID TransmissionNumSpeeds", (3, "10")),
        "TransmissionControlType": _rows(
            "TransmissionControlTypeID TransmissionControlTypeName", (4, "Electronically Controlled")
        ),
        "TransmissionBase": _rows(
            "TransmissionBaseID TransmissionTypeID TransmissionNumSpeedsID TransmissionControlTypeID", (1, 2, 3, 4)
        ),
        "Transmission": _rows("TransmissionID TransmissionBaseID", (701, 1)),
        "VehicleToTransmission": _rows("VehicleToTransmissionID VehicleID TransmissionID", (1, 1000, 701)),
        "DriveType": _rows("DriveTypeID DriveTypeName", (6, "4WD"), (7, "RWD")),
        "VehicleToDriveType": _rows(
            "VehicleToDriveTypeID VehicleID DriveTypeID", (1, 1000, 6), (2, 1001, 6), (3, 1003, 7)
        ),
        "BrakeType": _rows("BrakeTypeID BrakeTypeName", (5, "Disc")),
        "BrakeSystem": _rows("BrakeSystemID BrakeSystemName", (2, "Power")),
        "BrakeABS": _rows("BrakeABSID BrakeABSName", (3, "4-Wheel ABS")),
        "BrakeConfig": _rows("BrakeConfigID FrontBrakeTypeID RearBrakeTypeID BrakeSystemID BrakeABSID", (801, 5, 5, 2, 3)),
        "VehicleToBrakeConfig": _rows("VehicleToBrakeConfigID VehicleID BrakeConfigID", (1, 1000, 801)),
        "BodyType": _rows("BodyTypeID BodyTypeName", (7, "Pickup")),
        "BodyNumDoors": _rows("BodyNumDoorsID BodyNumDoors", (4, "4")),
        "BodyStyleConfig": _rows("BodyStyleConfigID BodyNumDoorsID BodyTypeID", (901, 4, 7)),
        "VehicleToBodyStyleConfig": _rows("VehicleToBodyStyleConfigID VehicleID BodyStyleConfigID", (1, 1000, 901)),
        "WheelBase": _rows("WheelBaseID WheelBase WheelBaseMetric", (41, "145.0", "3683.0")),
        "VehicleToWheelbase": _rows("VehicleToWheelbaseID VehicleID WheelbaseID", (1, 1000, 41)),
        "Mfr": _rows("MfrID MfrName", (15, "John Deere")),
        "EquipmentModel": _rows("EquipmentModelID EquipmentModelName", (60, "5075E")),
        "EquipmentBase": _rows("EquipmentBaseID MfrID EquipmentModelID VehicleTypeID", (70, 15, 60, 2195)),
    }
    pcdb = {
        "Parts": _rows("PartTerminologyID PartTerminologyName", (1896, "Disc Brake Pad"), (5340, "Engine Oil Filter")),
        "Positions": _rows("PositionID Position", (1, "Front"), (30, "Rear")),
    }
    qdb = {
        "Qualifier": _rows("QualifierID QualifierText", (12877, "With A/C"), (2350, "With <p1> Bed Length")),
    }
    return {"VCdb": vcdb, "PCdb": pcdb, "Qdb": qdb}


@pytest.fixture
def store() -> ReferenceDataStore:
    """In-memory reference store shared by the service tests."""
    return ReferenceDataStore.from_rows(reference_tables())


@pytest.fixture
def make_application():
    """Factory for Applications with sensible defaults (F-150 brake pads)."""
    def _make(**overrides) -> Application:
        data = {
            "id": "1",
            "identification": {"pattern": "base_vehicle", "base_vehicle_id": 100},
            "quantity": 2,
            "part_type_id": 1896,
            "position_id": 1,
            "part_number": {"value": "BP1234", "brand_aaiaid": "BBBB"},
        }
        data.update(overrides)
        return Application.model_validate(data)
    return _make
