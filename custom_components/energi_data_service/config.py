"""Configuration schema and validation for configuration.yaml."""

from __future__ import annotations

from typing import Any

import voluptuous as vol

from homeassistant.helpers import config_validation as cv

from .api.filters import GlobalLocationNumber
from .const import (
    CONF_CHARGE_TYPE_CODES,
    CONF_CURRENCY_CODE,
    CONF_ENERGINET_GLN,
    CONF_GRID_COMPANY_GLN,
    CONF_GRID_TARIFF,
    CONF_NOTES,
    CONF_OFFSET,
    CONF_PRICE_AREA,
    CONF_REDUCED_ELECTRICITY_TAX,
    CONF_START,
    CURRENCIES,
    DEFAULT_CURRENCY_CODE,
    DEFAULT_ENERGINET_GLN,
    DEFAULT_REDUCED_ELECTRICITY_TAX,
    DOMAIN,
    PRICE_AREAS,
)
from .data import DatahubPriceOverrides, EnergiDataServiceConfig


def validate_gln(value: Any) -> str:
    """
    Validate a Global Location Number.

    Empty values are allowed (the tariff is then not downloaded).

    Raises:
        vol.Invalid: If the value is not 13 digits with a valid check digit.

    """
    gln = cv.string(value).strip()
    if gln and not GlobalLocationNumber(gln).is_valid():
        msg = f"Invalid GLN '{gln}': expected 13 digits with a valid check digit"
        raise vol.Invalid(msg)
    return gln


def string_list(value: Any) -> list[str]:
    """Accept a list of strings or a comma separated string."""
    if value is None:
        return []
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return [cv.string(item).strip() for item in cv.ensure_list(value)]


GRID_TARIFF_SCHEMA = vol.Schema(
    {
        vol.Optional(CONF_CHARGE_TYPE_CODES, default=[]): string_list,
        vol.Optional(CONF_NOTES, default=[]): string_list,
        vol.Optional(CONF_START, default=""): cv.string,
        vol.Optional(CONF_OFFSET, default=""): cv.string,
    }
)

# Configuration schema for configuration.yaml
CONFIG_SCHEMA = vol.Schema(
    {
        DOMAIN: vol.Schema(
            {
                vol.Required(CONF_PRICE_AREA): vol.All(cv.string, vol.Upper, vol.In(PRICE_AREAS)),
                vol.Optional(CONF_CURRENCY_CODE, default=DEFAULT_CURRENCY_CODE): vol.All(
                    cv.string, vol.Upper, vol.In(CURRENCIES)
                ),
                vol.Optional(CONF_GRID_COMPANY_GLN, default=""): validate_gln,
                vol.Optional(CONF_ENERGINET_GLN, default=DEFAULT_ENERGINET_GLN): validate_gln,
                vol.Optional(CONF_REDUCED_ELECTRICITY_TAX, default=DEFAULT_REDUCED_ELECTRICITY_TAX): cv.boolean,
                vol.Optional(CONF_GRID_TARIFF, default={}): GRID_TARIFF_SCHEMA,
            }
        ),
    },
    extra=vol.ALLOW_EXTRA,
)


def config_from_yaml(domain_config: dict[str, Any]) -> EnergiDataServiceConfig:
    """Convert the validated domain configuration into an immutable config object."""
    grid_tariff = domain_config.get(CONF_GRID_TARIFF) or {}
    return EnergiDataServiceConfig(
        price_area=domain_config[CONF_PRICE_AREA],
        currency_code=domain_config.get(CONF_CURRENCY_CODE, DEFAULT_CURRENCY_CODE),
        grid_company_gln=GlobalLocationNumber(domain_config.get(CONF_GRID_COMPANY_GLN, "")),
        energinet_gln=GlobalLocationNumber(domain_config.get(CONF_ENERGINET_GLN, DEFAULT_ENERGINET_GLN)),
        reduced_electricity_tax=domain_config.get(CONF_REDUCED_ELECTRICITY_TAX, DEFAULT_REDUCED_ELECTRICITY_TAX),
        grid_tariff_overrides=DatahubPriceOverrides(
            charge_type_codes=tuple(grid_tariff.get(CONF_CHARGE_TYPE_CODES, ())),
            notes=tuple(grid_tariff.get(CONF_NOTES, ())),
            start=grid_tariff.get(CONF_START, ""),
            offset=grid_tariff.get(CONF_OFFSET, ""),
        ),
    )
