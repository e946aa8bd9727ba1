from typing import Optional
from pydantic import BaseModel, ValidationError as PydanticValidationError
from sqlalchemy.orm import Session
from bakery.core import get_logger
from bakery.core_settings import Settings, get_settings
from bakery.domain.errors import NotFoundError, ValidationError
from bakery.domain.models import AppSetting
from .schemas import (
    ServiceFeeSetting,
    OrderingEnabledSetting,
    DeliverySetting,
    PickupInstructionsSetting,
    BusinessInfoSetting,
)

logger = get_logger(__name__)

SERVICE_FEE_RATE = "service_fee_rate"
ORDERING_ENABLED = "ordering_enabled"
DELIVERY = "delivery"
PICKUP_INSTRUCTIONS = "pickup_instructions"
BUSINESS_INFO = "business_info"

SETTING_SCHEMAS: dict[str, type[BaseModel]] = {
    SERVICE_FEE_RATE: ServiceFeeSetting,
    ORDERING_ENABLED: OrderingEnabledSetting,
    DELIVERY: DeliverySetting,
    PICKUP_INSTRUCTIONS: PickupInstructionsSetting,
    BUSINESS_INFO: BusinessInfoSetting,
}

class SettingsService:
    """
    Typed key/value store for business parameters an admin can change at runtime.

    Values are validated against the key's schema on write and fall back to
    defaults derived from process configuration on read.
    """

    def __init__(self, db: Session, config: Optional[Settings] = None):
        self.db = db
        self.config = config or get_settings()

    def _schema(self, key: str) -> type[BaseModel]:
        schema = SETTING_SCHEMAS.get(key)
        if schema is None:
            raise NotFoundError("Setting")
        return schema

    def default(self, key: str) -> Optional[BaseModel]:
        if key == SERVICE_FEE_RATE:
            return ServiceFeeSetting(rate=self.config.DEFAULT_SERVICE_FEE_RATE)
        if key == ORDERING_ENABLED:
            return OrderingEnabledSetting(enabled=True)
        if key == DELIVERY:
            return DeliverySetting(free_minimum=self.config.FREE_DELIVERY_MINIMUM, fee=self.config.DELIVERY_FEE)
        if key == PICKUP_INSTRUCTIONS:
            return PickupInstructionsSetting()
        self._schema(key)
        return None

    def get(self, key: str) -> Optional[BaseModel]:
        schema = self._schema(key)
        row = self.db.get(AppSetting, key)
        if row is None:
            return self.default(key)
        try:
            return schema.model_validate(row.value)
        except PydanticValidationError:
            logger.warning(f"Stored setting '{key}' is invalid, using default")
            return self.default(key)

    def set(self, key: str, value: dict) -> BaseModel:
        schema = self._schema(key)
        try:
            validated = schema.model_validate(value)
        except PydanticValidationError as e:
            raise ValidationError(
                f"Invalid value for setting '{key}'",
                details=[
                    {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
                    for err in e.errors()
                ],
            ) from e
        row = self.db.get(AppSetting, key)
        stored = validated.model_dump(mode="json")
        if row is None:
            self.db.add(AppSetting(key=key, value=stored))
        else:
            row.value = stored
        self.db.commit()
        logger.info(f"Setting '{key}' updated", extra={'extra_fields': {'key': key}})
        return validated

    def get_all(self) -> dict[str, Optional[dict]]:
        result = {}
        for key in SETTING_SCHEMAS:
            value = self.get(key)
            result[key] = value.model_dump(mode="json") if value is not None else None
        return result

    def service_fee_rate(self) -> float:
        return self.get(SERVICE_FEE_RATE).rate

    def ordering_enabled(self) -> bool:
        return self.get(ORDERING_ENABLED).enabled

    def delivery(self) -> DeliverySetting:
        return self.get(DELIVERY)
