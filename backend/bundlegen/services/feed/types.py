"""Events feed shape: {month, events: [{date, slots: [{time, day_type, bundleVariantId_<ticket>...}]}]}."""
from pydantic import BaseModel, ConfigDict, Field

from bundlegen.core.constants import TICKET_ADULTO, TICKET_BAMBINO, TICKET_HANDICAP, TICKET_UNICO


class FeedSlot(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    time: str
    day_type: str | None = None
    bundle_variant_id_single: str | None = Field(default=None, alias="bundleVariantId_single")
    bundle_variant_id_adulto: str | None = Field(default=None, alias="bundleVariantId_adulto")
    bundle_variant_id_bambino: str | None = Field(default=None, alias="bundleVariantId_bambino")
    bundle_variant_id_handicap: str | None = Field(default=None, alias="bundleVariantId_handicap")

    def variant_ids(self) -> dict[str, str]:
        pairs = (
            (TICKET_UNICO, self.bundle_variant_id_single),
            (TICKET_ADULTO, self.bundle_variant_id_adulto),
            (TICKET_BAMBINO, self.bundle_variant_id_bambino),
            (TICKET_HANDICAP, self.bundle_variant_id_handicap),
        )
        return {ticket: vid for ticket, vid in pairs if vid}

    def set_variant_ids(self, variant_map: dict[str, str]) -> None:
        self.bundle_variant_id_single = variant_map.get(TICKET_UNICO)
        self.bundle_variant_id_adulto = variant_map.get(TICKET_ADULTO)
        self.bundle_variant_id_bambino = variant_map.get(TICKET_BAMBINO)
        self.bundle_variant_id_handicap = variant_map.get(TICKET_HANDICAP)


class FeedDay(BaseModel):
    date: str
    slots: list[FeedSlot] = Field(default_factory=list)


class FeedMonth(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    month: str
    events: list[FeedDay] = Field(default_factory=list)

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
