"""
Creation/edit wizard state machine.

The wizard walks a draft PropertyRecord through an ordered list of steps:

    BasicInfo -> PropertyDetails -> Location -> Pricing -> Media -> Amenities -> Review

Which steps exist, which fields each step shows and which of them are
required all come from hierarchy.classify(), recomputed from the draft on
every call. Containers have no Pricing step; children keep the Location step
but it only shows an "inherited from the parent" notice.

Fields hidden by a type change are kept on the draft (not validated, not
submitted) so switching back restores them.
"""

import logging
from enum import Enum

from pydantic import BaseModel, Field, ValidationError

from estate_catalog.catalog import CONTAINER_CATEGORIES
from estate_catalog.client import CatalogClientError
from estate_catalog.hierarchy import (
    AREA_FIELDS,
    BASIC_FIELDS,
    CONTAINER_FIELDS,
    LOCATION_FIELDS,
    MEDIA_FIELDS,
    PRICING_FIELDS,
    ROOM_FIELDS,
    UNIT_FIELDS,
    Classification,
    allowed_child_types,
    classify,
)
from estate_catalog.models import (
    MediaAttachment,
    PropertyCategory,
    PropertyRecord,
    PropertyStatus,
    RecordKind,
    SubmitResult,
)
from estate_catalog.utils import file_type_category, is_allowed_file

logger = logging.getLogger(__name__)


class Step(str, Enum):
    """Wizard steps, in order."""

    BASIC_INFO = "basic_info"
    PROPERTY_DETAILS = "property_details"
    LOCATION = "location"
    PRICING = "pricing"
    MEDIA = "media"
    AMENITIES = "amenities"
    REVIEW = "review"


class WizardState(str, Enum):
    EDITING = "editing"
    SUBMITTED = "submitted"


STEP_ORDER = list(Step)

STEP_TITLES = {
    Step.BASIC_INFO: "Basic Info",
    Step.PROPERTY_DETAILS: "Property Details",
    Step.LOCATION: "Property Location",
    Step.PRICING: "Pricing",
    Step.MEDIA: "Media",
    Step.AMENITIES: "Amenities",
    Step.REVIEW: "Final Review",
}

STEP_FIELDS: dict[Step, frozenset[str]] = {
    Step.BASIC_INFO: BASIC_FIELDS,
    Step.PROPERTY_DETAILS: CONTAINER_FIELDS | ROOM_FIELDS | UNIT_FIELDS | AREA_FIELDS,
    Step.LOCATION: LOCATION_FIELDS,
    Step.PRICING: PRICING_FIELDS,
    Step.MEDIA: MEDIA_FIELDS,
    Step.AMENITIES: frozenset({"amenities", "facilities"}),
    Step.REVIEW: frozenset(),
}

INHERITED_LOCATION_NOTICE = "Location and building amenities are inherited from the parent building."

# Error messages
MSG_TYPE_REQUIRED = "Type is required"
MSG_CATEGORY_INVALID = "Select tower, apartment, market or sharak"
MSG_AREA_POSITIVE = "Area size must be a positive number"
MSG_AT_LEAST_ONE = "Must be at least 1"
MSG_NOT_NEGATIVE = "Must be 0 or more"
MSG_PRICE_POSITIVE = "Price must be a positive number"
MSG_PRICE_REQUIRED = {
    "sale_price": "Sale price is required",
    "rent_price": "Rent price is required",
}
MSG_SALE_OR_RENT = "Select sale or rent"
MSG_PHOTO_REQUIRED = "At least one photo is required"
MSG_FILE_NOT_ALLOWED = "File type is not supported"
MSG_LOCATION = {
    "province_id": "Province is required",
    "district_id": "City is required",
    "area_id": "Area is required",
}


class WizardTransitionError(ValueError):
    """Navigation request the current state does not allow."""


class StepView(BaseModel):
    """What a step renders for the current draft."""

    step: Step
    title: str
    fields: frozenset[str] = frozenset()
    required: frozenset[str] = frozenset()
    inherited: bool = False
    notice: str | None = None


class StepValidation(BaseModel):
    """Result of validating one step."""

    step: Step
    field_errors: dict[str, str] = Field(default_factory=dict)
    step_error: str | None = None

    @property
    def ok(self) -> bool:
        return not self.field_errors and self.step_error is None


# =============================================================================
# STEP MEMBERSHIP & VISIBILITY
# =============================================================================

def steps_for(record: PropertyRecord) -> list[Step]:
    """Ordered steps of the wizard for this draft."""
    if classify(record).is_container:
        return [step for step in STEP_ORDER if step != Step.PRICING]
    return list(STEP_ORDER)


def required_fields(record: PropertyRecord, step: Step, position: Classification | None = None) -> frozenset[str]:
    """Fields a step insists on before it can be left."""
    position = position or classify(record)
    required: set[str] = set()

    if step == Step.BASIC_INFO:
        required |= {"property_type"}
        if position.is_container:
            required.add("property_category")

    elif step == Step.PROPERTY_DETAILS:
        if position.is_container:
            required |= CONTAINER_FIELDS

    elif step == Step.LOCATION:
        if not position.inherits_location:
            required |= set(MSG_LOCATION)

    elif step == Step.PRICING:
        if not position.is_container:
            if record.for_sale:
                required.add("sale_price")
            if record.for_rent:
                required.add("rent_price")

    elif step == Step.MEDIA:
        required.add("photos")

    return frozenset(required)


def step_view(record: PropertyRecord, step: Step) -> StepView:
    """Fields, required fields and notices a step shows for this draft."""
    position = classify(record)

    if step == Step.LOCATION and position.inherits_location:
        return StepView(
            step=step,
            title=STEP_TITLES[step],
            inherited=True,
            notice=INHERITED_LOCATION_NOTICE,
        )

    return StepView(
        step=step,
        title=STEP_TITLES[step],
        fields=STEP_FIELDS[step] & position.visible_fields,
        required=required_fields(record, step, position),
    )


# =============================================================================
# VALIDATION
# =============================================================================

def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _has_photo(record: PropertyRecord, attachments: list[MediaAttachment]) -> bool:
    if record.photos:
        return True
    return any(file_type_category(item.name, item.mime_type) == "image" for item in attachments)


def validate_step(
    record: PropertyRecord,
    step: Step,
    attachments: list[MediaAttachment] | None = None,
) -> StepValidation:
    """
    Validate one step of a draft.

    Field problems land in field_errors; the sale-or-rent rule of the
    Pricing step is a step_error since it belongs to no single field.
    """
    position = classify(record)
    result = StepValidation(step=step)
    errors = result.field_errors
    required = required_fields(record, step, position)

    if step == Step.BASIC_INFO:
        if _is_blank(record.property_type):
            errors["property_type"] = MSG_TYPE_REQUIRED
        elif position.is_child:
            allowed = allowed_child_types(record.property_category)
            if allowed and record.property_type.strip().lower() not in allowed:
                errors["property_type"] = (
                    f"A {record.property_category.value} can only hold: {', '.join(allowed)}"
                )
        if position.is_container and record.property_category not in CONTAINER_CATEGORIES:
            errors["property_category"] = MSG_CATEGORY_INVALID

    elif step == Step.PROPERTY_DETAILS:
        for field in required & CONTAINER_FIELDS:
            value = getattr(record, field)
            if value is None or value < 1:
                errors[field] = MSG_AT_LEAST_ONE
        # Area, unit number and room counts may be left empty
        if not position.is_container and record.area_size is not None and record.area_size <= 0:
            errors["area_size"] = MSG_AREA_POSITIVE
        for field in ROOM_FIELDS & position.visible_fields:
            value = getattr(record, field)
            if value is not None and value < 0:
                errors[field] = MSG_NOT_NEGATIVE

    elif step == Step.LOCATION:
        for field in sorted(required):
            if _is_blank(getattr(record, field)):
                errors[field] = MSG_LOCATION[field]

    elif step == Step.PRICING and not position.is_container:
        if not (record.for_sale or record.for_rent):
            result.step_error = MSG_SALE_OR_RENT
        for field in sorted(required):
            price = getattr(record, field)
            if price is None:
                errors[field] = MSG_PRICE_REQUIRED[field]
            elif price <= 0:
                errors[field] = MSG_PRICE_POSITIVE

    elif step == Step.MEDIA:
        if not _has_photo(record, attachments or []):
            errors["photos"] = MSG_PHOTO_REQUIRED

    return result


# =============================================================================
# SUBMISSION PAYLOAD
# =============================================================================

def submission_category(record: PropertyRecord, position: Classification | None = None) -> PropertyCategory:
    """
    Category to send for a draft.

    Containers and their units use tower, market or sharak ("apartment"
    blocks are sent as towers, anything else falls back to tower);
    standalone listings are always "normal".
    """
    position = position or classify(record)
    if not (position.is_container or position.is_child):
        return PropertyCategory.NORMAL

    category = record.property_category
    if category == PropertyCategory.APARTMENT:
        return PropertyCategory.TOWER
    if category not in (PropertyCategory.TOWER, PropertyCategory.MARKET, PropertyCategory.SHARAK):
        return PropertyCategory.TOWER
    return category


def to_submission_payload(record: PropertyRecord) -> dict:
    """
    Build the JSON body for submit_property().

    Only fields visible for the draft's position and type are sent; stale
    values left over from an earlier type stay on the draft.
    """
    position = classify(record)
    visible = position.visible_fields
    container = position.is_container

    def shown(field: str):
        return getattr(record, field) if field in visible else None

    parent_id = record.parent_id if position.is_child else None
    address = None if position.inherits_location else (record.address or record.location)
    location = None if position.inherits_location else (record.location or record.address)

    purpose = record.purpose
    if record.for_sale:
        purpose = "sale"
    elif record.for_rent:
        purpose = "rent"

    return {
        "property_id": record.property_id,
        "record_kind": RecordKind.CONTAINER.value if container else RecordKind.LISTING.value,
        "is_parent": container,
        "property_category": submission_category(record, position).value,
        "parent_id": parent_id,
        "parent_property_id": parent_id,
        "property_type": record.property_type,
        "status": record.status.value,
        "title": record.title,
        "description": record.description,
        "purpose": purpose,
        "is_available_for_sale": False if container else record.for_sale,
        "is_available_for_rent": False if container else record.for_rent,
        "sale_price": record.sale_price if not container and record.for_sale else None,
        "sale_currency": record.sale_currency.value,
        "rent_price": record.rent_price if not container and record.for_rent else None,
        "rent_currency": record.rent_currency.value,
        "area_size": shown("area_size"),
        "area_unit": record.area_unit,
        "bedrooms": shown("bedrooms"),
        "bathrooms": shown("bathrooms"),
        "floor": shown("floor"),
        "unit_number": shown("unit_number"),
        "total_floors": shown("total_floors"),
        "planned_units": shown("planned_units"),
        "province_id": shown("province_id"),
        "district_id": shown("district_id"),
        "area_id": shown("area_id"),
        "address": address,
        "location": location,
        "latitude": shown("latitude"),
        "longitude": shown("longitude"),
        "amenities": [] if container else list(record.amenities),
        "facilities": list(record.facilities) if container else [],
        "photos": list(record.photos),
        "videos": list(record.videos),
        "attachments": list(record.attachments),
        "agent_id": record.agent_id,
        "owner_person_id": record.owner_person_id,
    }


# =============================================================================
# WIZARD
# =============================================================================

class PropertyWizard:
    """
    One creation or edit session.

    The session owns its draft: the record passed in is copied, never
    modified. Navigation returns False (and records errors) when the current
    step does not validate; WizardTransitionError is reserved for requests
    the state machine cannot express at all.
    """

    def __init__(
        self,
        record: PropertyRecord | None = None,
        attachments: list[MediaAttachment] | None = None,
    ):
        """
        Start a session.

        Args:
            record: Existing record to edit, or a pre-filled draft (e.g. a new
                unit with parent_id and category already set)
            attachments: Files already picked for upload
        """
        if record is None:
            record = PropertyRecord(status=PropertyStatus.DRAFT)
        self.draft = record.model_copy(deep=True)
        self.is_editing = record.property_id is not None
        self.attachments: list[MediaAttachment] = list(attachments or [])

        self.state = WizardState.EDITING
        self.current_step = Step.BASIC_INFO
        self.field_errors: dict[str, str] = {}
        self.step_error: str | None = None
        self.global_error: str | None = None
        self.loading = False
        self.property_id: int | None = record.property_id

    # --- Derived state ---

    @property
    def steps(self) -> list[Step]:
        return steps_for(self.draft)

    @property
    def classification(self) -> Classification:
        return classify(self.draft)

    @property
    def current_view(self) -> StepView:
        return step_view(self.draft, self.current_step)

    @property
    def current_index(self) -> int:
        steps = self.steps
        if self.current_step in steps:
            return steps.index(self.current_step)
        # Current step dropped out of the sequence: count the steps before it
        order = STEP_ORDER.index(self.current_step)
        return len([step for step in steps if STEP_ORDER.index(step) < order])

    @property
    def progress(self) -> float:
        """Completion percentage of the current position."""
        return (self.current_index + 1) / len(self.steps) * 100

    @property
    def is_first_step(self) -> bool:
        return self.current_index == 0

    @property
    def is_last_step(self) -> bool:
        return self.current_step == Step.REVIEW

    @property
    def is_submitted(self) -> bool:
        return self.state == WizardState.SUBMITTED

    # --- Editing ---

    def update(self, **fields) -> bool:
        """
        Set draft fields.

        Values go through the record's validation; a value that cannot be
        coerced is reported in field_errors and leaves the field unchanged.

        Returns:
            True if every field was accepted
        """
        self._require_editing()
        accepted = True

        for name, value in fields.items():
            if name not in PropertyRecord.model_fields:
                raise WizardTransitionError(f"Unknown field: {name}")
            try:
                setattr(self.draft, name, value)
            except ValidationError as e:
                self.field_errors[name] = e.errors()[0]["msg"]
                accepted = False
            else:
                self.field_errors.pop(name, None)

        return accepted

    def add_attachment(self, attachment: MediaAttachment) -> bool:
        """Queue a picked file for upload; unsupported types are refused."""
        self._require_editing()
        if not is_allowed_file(attachment.name, attachment.mime_type):
            self.field_errors["attachments"] = f"{MSG_FILE_NOT_ALLOWED}: {attachment.name}"
            return False
        self.field_errors.pop("attachments", None)
        self.attachments.append(attachment)
        return True

    def remove_attachment(self, uri: str) -> None:
        self._require_editing()
        self.attachments = [item for item in self.attachments if item.uri != uri]

    def remove_media(self, path: str) -> None:
        """Drop an already uploaded photo/video/attachment from the draft."""
        self._require_editing()
        for field in ("photos", "videos", "attachments"):
            current = getattr(self.draft, field)
            if path in current:
                setattr(self.draft, field, [item for item in current if item != path])

    # --- Navigation ---

    def validate_current(self) -> StepValidation:
        """Validate the current step and expose its errors."""
        result = validate_step(self.draft, self.current_step, self.attachments)
        self.field_errors = dict(result.field_errors)
        self.step_error = result.step_error
        return result

    def next(self) -> bool:
        """Advance one step if the current one validates."""
        self._require_editing()
        if self.current_step == Step.REVIEW:
            return False

        if not self.validate_current().ok:
            logger.debug("Step %s blocked: %s %s", self.current_step.value, self.field_errors, self.step_error)
            return False

        self.current_step = self._neighbour(+1)
        logger.debug("Advanced to %s", self.current_step.value)
        return True

    def back(self) -> bool:
        """Go back one step; never validates."""
        self._require_editing()
        if self.is_first_step:
            return False

        self._clear_errors()
        self.current_step = self._neighbour(-1)
        logger.debug("Went back to %s", self.current_step.value)
        return True

    def edit_step(self, step: Step) -> None:
        """Jump from Review straight to an earlier step."""
        self._require_editing()
        if self.current_step != Step.REVIEW:
            raise WizardTransitionError("Steps can only be edited from the review step")
        if step == Step.REVIEW or step not in self.steps:
            raise WizardTransitionError(f"Step {step.value} is not editable for this property")

        self._clear_errors()
        self.current_step = step

    def validate_all(self) -> StepValidation | None:
        """First failing step before Review, or None when the draft is complete."""
        for step in self.steps:
            if step == Step.REVIEW:
                break
            result = validate_step(self.draft, step, self.attachments)
            if not result.ok:
                return result
        return None

    async def submit(self, client) -> SubmitResult | None:
        """
        Submit the draft from the Review step.

        Args:
            client: Object with an async submit_property(payload, attachments)
                returning SubmitResult (see CatalogClient)

        Returns:
            SubmitResult on success; None when a step is incomplete (the wizard
            moves to it) or the server rejects the draft (global_error is set
            and the wizard stays on Review with the draft intact)
        """
        self._require_editing()
        if self.current_step != Step.REVIEW:
            raise WizardTransitionError("Submission is only possible from the review step")

        failure = self.validate_all()
        if failure is not None:
            self.current_step = failure.step
            self.field_errors = dict(failure.field_errors)
            self.step_error = failure.step_error
            return None

        self.global_error = None
        self.loading = True
        try:
            result = await client.submit_property(to_submission_payload(self.draft), self.attachments)
        except CatalogClientError as e:
            logger.warning("Submission failed: %s", e)
            saved_id = getattr(e, "property_id", None)
            if saved_id is not None:
                # Record exists on the server; retry as an update
                self.property_id = saved_id
                self.draft.property_id = saved_id
            self.global_error = str(e)
            return None
        finally:
            self.loading = False

        self.property_id = result.property_id
        self.draft.property_id = result.property_id
        self.attachments = []
        self.state = WizardState.SUBMITTED
        return result

    # --- Internals ---

    def _neighbour(self, offset: int) -> Step:
        steps = self.steps
        order = STEP_ORDER.index(self.current_step)
        if offset > 0:
            following = [step for step in steps if STEP_ORDER.index(step) > order]
            return following[0]
        preceding = [step for step in steps if STEP_ORDER.index(step) < order]
        return preceding[-1]

    def _clear_errors(self) -> None:
        self.field_errors = {}
        self.step_error = None

    def _require_editing(self) -> None:
        if self.state != WizardState.EDITING:
            raise WizardTransitionError("The property has already been submitted")
