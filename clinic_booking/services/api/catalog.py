"""Clinic catalog endpoints - clinics, rosters, staff, addresses and contact data."""

from dataclasses import replace
from typing import Any, Dict, List, Optional

from loguru import logger

from ...core.exceptions import CatalogError
from ...core.retry import get_catalog_retry
from .base import ApiEndpoint, as_list, unwrap
from .models import Address, Clinic, ClinicRoster, Staff


class CatalogApi(ApiEndpoint):
    """Read access to the clinic catalog and the user's saved addresses."""

    def __init__(self, *args: Any, retry_attempts: int = 3, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self._retry = get_catalog_retry(retry_attempts)

    async def _get(self, path: str, auth: bool = False) -> Any:
        return await self._retry(self._request)("GET", path, auth=auth)

    async def get_clinics(self) -> List[Clinic]:
        """
        Get all clinics.

        Returns:
            List of clinics (the endpoint is paginated as ``data.data``)
        """
        data = unwrap(await self._get("/clinics"))
        clinics = [Clinic.from_api(item) for item in as_list(data, "data", "clinics")]
        logger.info(f"Retrieved {len(clinics)} clinics")
        return clinics

    async def get_clinic_roster(self, clinic_id: int) -> ClinicRoster:
        """
        Get services and staff of one clinic.

        Staff comes from the same payload, or from the staff endpoint when the
        payload carries no staff list.

        Args:
            clinic_id: Numeric clinic id

        Returns:
            ClinicRoster with normalized services and staff

        Raises:
            CatalogError: If the payload carries no clinic object
        """
        data = unwrap(await self._get(f"/clinics/{clinic_id}"))
        if not isinstance(data, dict):
            raise CatalogError(f"Clinic {clinic_id} payload is not an object")

        roster = ClinicRoster.from_api(clinic_id, data)
        if "staff" not in data:
            # No staff list in the clinic payload
            roster = replace(roster, staff=tuple(await self.get_clinic_staff(clinic_id)))
        logger.info(
            f"Loaded clinic {clinic_id}: {len(roster.services)} services, "
            f"{len(roster.staff)} staff"
        )
        return roster

    async def get_clinic_staff(self, clinic_id: int) -> List[Staff]:
        """
        Get the staff list of one clinic.

        Args:
            clinic_id: Numeric clinic id

        Returns:
            List of staff members
        """
        data = unwrap(await self._get(f"/clinics/{clinic_id}/staff"))
        return [Staff.from_api(item) for item in as_list(data, "staff")]

    async def get_addresses(self) -> List[Address]:
        """Get the authenticated user's saved addresses."""
        data = unwrap(await self._get("/user/addresses", auth=True))
        return [Address.from_api(item) for item in as_list(data, "addresses", "data")]

    async def add_address(self, name: str, mobile: str, address: str, city: str) -> None:
        """
        Save a new address for the authenticated user.

        Not retried: a retried POST could create the address twice.
        """
        payload: Dict[str, Any] = {
            "name": name,
            "mobile": mobile,
            "address": address,
            "city": city,
        }
        await self._request("POST", "/user/addresses", json=payload, auth=True)
        logger.info("Address added")

    async def get_whatsapp_number(self) -> Optional[str]:
        """
        Get the contact channel number from the site contact data.

        Returns:
            Number of the ``contact_data`` entry, or None if it is not published
        """
        data = unwrap(await self._get("/contact-data"))
        for entry in as_list(data, "data"):
            if entry.get("prefix") != "contact_data":
                continue
            contact = entry.get("data") or {}
            number = contact.get("whats_app_number") if isinstance(contact, dict) else None
            if number:
                return str(number)
        return None
