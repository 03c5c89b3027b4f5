"""Pydantic v2 models for decoded launchpad accounts."""

import time

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.parsers.launchpad.classifier import launch_status
from src.parsers.launchpad.constants import (
    KEY_SELLER,
    KEY_TEAM_WALLET,
    STRING_BANNER,
    STRING_CATEGORY_TAG,
    STRING_ICON,
    STRING_NAME,
    STRING_SYMBOL,
    STRING_URI,
    AccountType,
    LaunchCategory,
    LaunchMeta,
    LaunchStatus,
    PluginKind,
    SchemaVersion,
)


class WhitelistTokenPlugin(BaseModel):
    """LaunchPlugin::WhiteListToken: holders of `token` may join until `phase_end`."""

    kind: PluginKind = PluginKind.WHITELIST_TOKEN
    token: str
    quantity: int
    phase_end: int

    model_config = ConfigDict(frozen=True)


class LaunchRecord(BaseModel):
    """One decoded LaunchData account.

    Built once per buffer and never mutated; a newer buffer for the same
    address produces a new record.
    """

    address: str | None = None
    schema_version: SchemaVersion
    account_type: AccountType
    launch_meta: LaunchMeta
    category: LaunchCategory
    plugins: tuple[WhitelistTokenPlugin, ...] = ()

    last_interaction: int
    num_interactions: int
    page_name: str
    listing: str
    total_supply: int
    num_mints: int  # 0 = unlimited
    ticket_price: int
    minimum_liquidity: int
    launch_date: int
    end_date: int
    tickets_sold: int = Field(ge=0)
    tickets_claimed: int
    mints_won: int
    buffer1: int
    buffer2: int
    buffer3: int

    distribution: tuple[int, ...] = ()
    flags: tuple[int, ...] = ()
    strings: tuple[str, ...] = ()
    keys: tuple[str, ...] = ()

    is_tradable: bool = False

    # CURRENT layout only
    tokens_sold: int | None = None
    is_graduated: bool | None = None
    graduation_threshold: int | None = None

    # LEGACY layout only
    creator: str | None = None
    upvotes: int | None = None
    downvotes: int | None = None

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_ticket_bounds(self) -> "LaunchRecord":
        if self.num_mints > 0 and self.tickets_sold > self.num_mints:
            raise ValueError(
                f"tickets_sold {self.tickets_sold} exceeds num_mints {self.num_mints}"
            )
        return self

    def _string_at(self, index: int) -> str | None:
        if index < len(self.strings):
            value = self.strings[index].strip()
            return value or None
        return None

    @property
    def name(self) -> str | None:
        return self._string_at(STRING_NAME)

    @property
    def symbol(self) -> str | None:
        return self._string_at(STRING_SYMBOL)

    @property
    def uri(self) -> str | None:
        return self._string_at(STRING_URI)

    @property
    def icon(self) -> str | None:
        return self._string_at(STRING_ICON)

    @property
    def banner(self) -> str | None:
        return self._string_at(STRING_BANNER)

    @property
    def category_tag(self) -> str | None:
        return self._string_at(STRING_CATEGORY_TAG)

    @property
    def seller(self) -> str | None:
        return self.keys[KEY_SELLER] if len(self.keys) > KEY_SELLER else None

    @property
    def team_wallet(self) -> str | None:
        return self.keys[KEY_TEAM_WALLET] if len(self.keys) > KEY_TEAM_WALLET else None

    @property
    def is_unlimited(self) -> bool:
        return self.num_mints == 0

    def status(self, now: float | None = None) -> LaunchStatus:
        """Lifecycle status at `now` (epoch seconds, default: current time)."""
        return launch_status(
            self.launch_date, self.end_date, time.time() if now is None else now
        )
