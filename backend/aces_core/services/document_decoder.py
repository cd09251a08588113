"""
Decode an ACES XML document into Application records.

- The envelope version must be a supported one; otherwise the whole decode
  fails with UnsupportedVersionError. Unparseable XML raises
  MalformedDocumentError.
- Each App is decoded on its own: a bad App becomes one DecodeError keyed
  by its id and decoding carries on with the rest.
- Header fields, Asset / DigitalFileInformation counts and the footer
  RecordCount are reported alongside; a RecordCount that disagrees with
  the App count is a warning.
"""

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field

from pydantic import ValidationError

from aces_core.data.config_kinds import VEHICLE_ATTRIBUTES
from aces_core.errors import DecodeError, MalformedDocumentError, UnsupportedVersionError
from aces_core.schemas.application import (
    Application,
    EquipmentPattern,
    PartNumber,
    Qualifier,
    VehicleAttribute,
    build_identification,
)
from aces_core.schemas.document import DocumentHeader, SchemaVersion
from aces_core.services.schema_versions import SUPPORTED_VERSIONS, Feature, parse_version, supports

logger = logging.getLogger(__name__)


@dataclass
class DecodeResult:
    version: SchemaVersion
    header: DocumentHeader
    applications: list[Application] = field(default_factory=list)
    errors: list[DecodeError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    app_count: int = 0
    asset_count: int = 0
    digital_file_count: int = 0
    declared_record_count: int | None = None

    @property
    def success(self) -> bool:
        return not self.errors

    def as_dict(self) -> dict:
        return {
            "success": self.success,
            "version": self.version.value,
            "header": self.header.model_dump(),
            "applications": [a.model_dump(mode="json") for a in self.applications],
            "errors": [{"id": e.source_id, "message": e.message} for e in self.errors],
            "warnings": self.warnings,
            "app_count": self.app_count,
            "asset_count": self.asset_count,
            "digital_file_count": self.digital_file_count,
            "declared_record_count": self.declared_record_count,
        }


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1] if "}" in tag else tag


def _strip_namespaces(root: ET.Element) -> None:
    for el in root.iter():
        if isinstance(el.tag, str):
            el.tag = _local(el.tag)


def _int(value: str | None, what: str) -> int | None:
    if value is None or not value.strip():
        return None
    try:
        return int(value.strip())
    except ValueError:
        raise DecodeError(f"{what} is not an integer: {value!r}")


def _child_id(el: ET.Element, tag: str) -> int | None:
    child = el.find(tag)
    if child is None:
        return None
    value = _int(child.get("id"), f"{tag} id")
    if value is None:
        raise DecodeError(f"{tag} has no id")
    return value


def _text(el: ET.Element, tag: str) -> str | None:
    value = el.findtext(tag)
    if value is None:
        return None
    return value.strip() or None


def _pydantic_message(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in e['loc']) or 'value'}: {e['msg']}" for e in exc.errors()
    )


# ─── Header ──────────────────────────────────────────────────────────


def decode_header(el: ET.Element | None) -> DocumentHeader:
    if el is None:
        return DocumentHeader()
    approved = el.find("PartsApprovedFor")
    countries = [c.text.strip() for c in approved.findall("Country") if c.text] if approved is not None else []
    return DocumentHeader(
        company=_text(el, "Company"),
        sender_name=_text(el, "SenderName"),
        sender_phone=_text(el, "SenderPhone"),
        transfer_date=_text(el, "TransferDate"),
        brand_aaiaid=_text(el, "BrandAAIAID"),
        sub_brand_aaiaid=_text(el, "SubBrandAAIAID"),
        document_title=_text(el, "DocumentTitle"),
        effective_date=_text(el, "EffectiveDate"),
        parts_approved_for=countries,
        submission_type=_text(el, "SubmissionType"),
        vcdb_version_date=_text(el, "VcdbVersionDate"),
        qdb_version_date=_text(el, "QdbVersionDate"),
        pcdb_version_date=_text(el, "PcdbVersionDate"),
    )


# ─── App ─────────────────────────────────────────────────────────────


def _decode_identification(el: ET.Element):
    years = el.find("Years")
    year_from = year_to = None
    if years is not None:
        year_from = _int(years.get("from"), "Years from")
        year_to = _int(years.get("to"), "Years to")
        if year_from is None and year_to is None:
            raise DecodeError("Years has neither from nor to")

    production = el.find("ProductionYears")
    production_start = production_end = None
    if production is not None:
        production_start = _int(production.get("ProductionStart"), "ProductionStart")
        production_end = _int(production.get("ProductionEnd"), "ProductionEnd")

    return build_identification(
        base_vehicle_id=_child_id(el, "BaseVehicle"),
        year_from=year_from,
        year_to=year_to,
        make_id=_child_id(el, "Make"),
        model_id=_child_id(el, "Model"),
        mfr_id=_child_id(el, "Mfr"),
        equipment_model_id=_child_id(el, "EquipmentModel"),
        vehicle_type_id=_child_id(el, "VehicleType"),
        equipment_base_id=_child_id(el, "EquipmentBase"),
        production_start=production_start,
        production_end=production_end,
    )


def _decode_qualifier(el: ET.Element) -> Qualifier:
    qid = _int(el.get("id"), "Qual id")
    if qid is None:
        raise DecodeError("Qual has no id")
    text = el.findtext("text")
    return Qualifier(
        id=qid,
        text=text.strip() if text and text.strip() else None,
        params=[p.get("value", "") for p in el.findall("param")],
    )


def decode_application(el: ET.Element, version: SchemaVersion) -> Application:
    """Decode one App element; raises DecodeError or ValueError."""
    identification = _decode_identification(el)
    if isinstance(identification, EquipmentPattern) and not supports(version, Feature.EQUIPMENT):
        raise DecodeError(f"Equipment applications are not allowed in ACES {version.value}")

    qty = _int(el.findtext("Qty"), "Qty")
    if qty is None:
        raise DecodeError("Missing Qty")
    part_type_id = _child_id(el, "PartType")
    if part_type_id is None:
        raise DecodeError("Missing PartType")
    part = el.find("Part")
    if part is None or not (part.text or "").strip():
        raise DecodeError("Missing Part")

    asset_name = _text(el, "AssetName")
    asset_item_order = _int(el.findtext("AssetItemOrder"), "AssetItemOrder")
    if (asset_name or asset_item_order is not None) and not supports(version, Feature.ASSET_NAME):
        raise DecodeError(f"Asset references are not allowed in ACES {version.value}")

    attributes = []
    for child in el:
        if child.tag in VEHICLE_ATTRIBUTES:
            attr_id = _int(child.get("id"), f"{child.tag} id")
            if attr_id is None:
                raise DecodeError(f"{child.tag} has no id")
            attributes.append(VehicleAttribute(name=child.tag, id=attr_id))

    try:
        return Application(
            id=el.get("id"),
            action=el.get("action", "A"),
            validation=el.get("validate", "yes"),
            identification=identification,
            vehicle_attributes=attributes,
            quantity=qty,
            part_type_id=part_type_id,
            position_id=_child_id(el, "Position"),
            part_number=PartNumber(
                value=part.text,
                brand_aaiaid=part.get("BrandAAIAID"),
                sub_brand_aaiaid=part.get("SubBrandAAIAID"),
            ),
            mfr_label=_text(el, "MfrLabel"),
            qualifiers=[_decode_qualifier(q) for q in el.findall("Qual")],
            notes=[(n.text or "").strip() for n in el.findall("Note")],
            asset_name=asset_name,
            asset_item_order=asset_item_order,
            display_order=_int(el.findtext("DisplayOrder"), "DisplayOrder"),
        )
    except ValidationError as e:
        raise DecodeError(_pydantic_message(e))


# ─── Document ────────────────────────────────────────────────────────


def parse_envelope(payload: bytes | str) -> tuple[ET.Element, SchemaVersion]:
    """Parse XML and check the ACES root and version; fatal on failure."""
    try:
        root = ET.fromstring(payload)
    except ET.ParseError as e:
        raise MalformedDocumentError(f"XML parsing failed: {e}")
    _strip_namespaces(root)
    if root.tag != "ACES":
        raise MalformedDocumentError(f"Root element is <{root.tag}>, expected <ACES>")

    declared = root.get("version")
    if declared is None:
        raise UnsupportedVersionError("ACES document declares no version")
    version = parse_version(declared)
    if version is None:
        raise UnsupportedVersionError(
            f"Unsupported ACES version: {declared} (supported: {', '.join(SUPPORTED_VERSIONS)})"
        )
    return root, version


def decode_document(payload: bytes | str) -> DecodeResult:
    """
    Decode a whole document. Raises MalformedDocumentError or
    UnsupportedVersionError for envelope problems; App-level problems are
    collected on the result.
    """
    root, version = parse_envelope(payload)
    result = DecodeResult(version=version, header=decode_header(root.find("Header")))
    if root.find("Header") is None:
        result.warnings.append("Document has no Header")

    app_elements = root.findall("App")
    result.app_count = len(app_elements)
    for index, el in enumerate(app_elements, start=1):
        source_id = el.get("id") or f"#{index}"
        try:
            result.applications.append(decode_application(el, version))
        except (DecodeError, ValueError) as e:
            message = e.message if isinstance(e, DecodeError) else str(e)
            logger.warning(f"App {source_id}: {message}")
            result.errors.append(DecodeError(message, source_id=source_id))

    result.asset_count = len(root.findall("Asset"))
    result.digital_file_count = len(root.findall("DigitalAsset/DigitalFileInformation"))

    footer_count = root.findtext("Footer/RecordCount")
    if footer_count is not None:
        try:
            result.declared_record_count = int(footer_count.strip())
        except ValueError:
            result.warnings.append(f"Footer RecordCount is not an integer: {footer_count!r}")
    if result.declared_record_count is not None and result.declared_record_count != result.app_count:
        message = f"Footer RecordCount {result.declared_record_count} does not match {result.app_count} App elements"
        logger.warning(message)
        result.warnings.append(message)

    logger.info(
        f"Decoded ACES {version.value}: {len(result.applications)} applications, "
        f"{len(result.errors)} errors, {result.asset_count} assets, "
        f"{result.digital_file_count} digital files"
    )
    return result
