"""
Encode Application records into an ACES XML document.

The version is the lowest one whose features cover the whole batch (one
equipment App or asset reference anywhere lifts the whole document to 4.2),
raised to options.minimum_version when that is higher. Optional elements are
only written when populated; the Footer RecordCount equals the number of
App elements written.
"""

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import date

from aces_core.data.reference_store import QDB, ReferenceDataStore
from aces_core.schemas.application import (
    Application,
    BaseVehiclePattern,
    EquipmentPattern,
    YearMakeModelPattern,
)
from aces_core.schemas.document import ExportOptions, SchemaVersion
from aces_core.services.schema_versions import required_version

logger = logging.getLogger(__name__)

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'


@dataclass
class EncodeResult:
    xml: str
    version: SchemaVersion
    record_count: int


def _sub(parent: ET.Element, tag: str, text=None, **attrs) -> ET.Element:
    el = ET.SubElement(parent, tag, {k: str(v) for k, v in attrs.items() if v is not None})
    if text is not None:
        el.text = str(text)
    return el


def _build_header(root: ET.Element, options: ExportOptions) -> None:
    header = _sub(root, "Header")
    _sub(header, "Company", options.company_name)
    _sub(header, "SenderName", options.sender_name)
    _sub(header, "SenderPhone", options.sender_phone)
    _sub(header, "TransferDate", (options.transfer_date or date.today()).isoformat())
    _sub(header, "BrandAAIAID", options.brand_aaiaid)
    if options.sub_brand_aaiaid:
        _sub(header, "SubBrandAAIAID", options.sub_brand_aaiaid)
    _sub(header, "DocumentTitle", options.document_title)
    _sub(header, "EffectiveDate", options.effective_date.isoformat())
    approved = _sub(header, "PartsApprovedFor")
    for country in options.parts_approved_for:
        _sub(approved, "Country", country)
    _sub(header, "SubmissionType", options.submission_type.value)
    if options.vcdb_version_date:
        _sub(header, "VcdbVersionDate", options.vcdb_version_date)
    if options.qdb_version_date:
        _sub(header, "QdbVersionDate", options.qdb_version_date)
    if options.pcdb_version_date:
        _sub(header, "PcdbVersionDate", options.pcdb_version_date)


def _build_identification(app_el: ET.Element, app: Application) -> None:
    ident = app.identification
    if isinstance(ident, BaseVehiclePattern):
        _sub(app_el, "BaseVehicle", id=ident.base_vehicle_id)
    elif isinstance(ident, YearMakeModelPattern):
        _sub(app_el, "Years", **{"from": ident.year_from, "to": ident.year_to})
        _sub(app_el, "Make", id=ident.make_id)
        _sub(app_el, "Model", id=ident.model_id)
    elif isinstance(ident, EquipmentPattern):
        _sub(app_el, "Mfr", id=ident.mfr_id)
        _sub(app_el, "EquipmentModel", id=ident.equipment_model_id)
        if ident.equipment_base_id is not None:
            _sub(app_el, "EquipmentBase", id=ident.equipment_base_id)
        _sub(app_el, "VehicleType", id=ident.vehicle_type_id)
        if ident.production_start is not None or ident.production_end is not None:
            _sub(
                app_el,
                "ProductionYears",
                ProductionStart=ident.production_start,
                ProductionEnd=ident.production_end,
            )


def _build_app(root: ET.Element, app: Application, app_id: str, store: ReferenceDataStore | None) -> None:
    attrs = {"action": app.action.value, "id": app_id}
    if not app.should_validate:
        attrs["validate"] = "no"
    app_el = _sub(root, "App", **attrs)

    _build_identification(app_el, app)
    for attribute in app.vehicle_attributes:
        _sub(app_el, attribute.name, id=attribute.id)

    for qualifier in app.qualifiers:
        qual_el = _sub(app_el, "Qual", id=qualifier.id)
        for param in qualifier.params:
            _sub(qual_el, "param", value=param)
        text = qualifier.text
        if text is None and store is not None:
            text = store.lookup_value(QDB, "Qualifier", qualifier.id, "QualifierText")
        if text:
            _sub(qual_el, "text", text)

    for note in app.notes:
        _sub(app_el, "Note", note)

    _sub(app_el, "Qty", app.quantity)
    _sub(app_el, "PartType", id=app.part_type_id)
    if app.mfr_label:
        _sub(app_el, "MfrLabel", app.mfr_label)
    if app.position_id is not None:
        _sub(app_el, "Position", id=app.position_id)
    _sub(
        app_el,
        "Part",
        app.part_number.value,
        BrandAAIAID=app.part_number.brand_aaiaid,
        SubBrandAAIAID=app.part_number.sub_brand_aaiaid,
    )
    if app.display_order is not None:
        _sub(app_el, "DisplayOrder", app.display_order)
    if app.asset_name:
        _sub(app_el, "AssetName", app.asset_name)
    if app.asset_item_order is not None:
        _sub(app_el, "AssetItemOrder", app.asset_item_order)


def encode_document(
    applications: list[Application],
    options: ExportOptions,
    store: ReferenceDataStore | None = None,
) -> EncodeResult:
    """
    Serialize applications to an ACES document. Qualifiers are written as
    given; with options.fill_qualifier_text and a store, ones without text
    get their Qdb text.
    """
    version = required_version(applications, options.minimum_version)
    root = ET.Element("ACES", version=version.value)
    _build_header(root, options)

    for index, app in enumerate(applications, start=1):
        _build_app(root, app, app.id or str(index), store if options.fill_qualifier_text else None)

    footer = _sub(root, "Footer")
    _sub(footer, "RecordCount", len(applications))

    ET.indent(root, space="  ")
    xml = XML_DECLARATION + ET.tostring(root, encoding="unicode") + "\n"
    logger.info(
        f"Encoded {len(applications)} applications as ACES {version.value} "
        f"({options.submission_type.value}, brand {options.brand_aaiaid})"
    )
    return EncodeResult(xml=xml, version=version, record_count=len(applications))
