"""Tenant-side offer lifecycle: accept with a payment gateway, reject, then sign the contract."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import replace

from rental_client.application.dto.offer import UpdateOfferStatusDTO
from rental_client.application.exceptions import AppError, ConflictError, ValidationError, error_message
from rental_client.application.policies.offer_transitions import (
    assert_tenant_transition,
    parse_gateway,
)
from rental_client.application.ports.contracts import ContractApi
from rental_client.application.ports.offers import OfferApi
from rental_client.config import settings
from rental_client.domain.entities.contract import Contract, ContractEligibility
from rental_client.domain.entities.offer import Offer
from rental_client.domain.value_objects.enums import (
    EligibilityState,
    OfferAction,
    OfferStatus,
    PaymentGateway,
)
from rental_client.domain.value_objects.ids import ContractId, OfferId, RentalRequestId

logger = logging.getLogger(__name__)


async def list_my_offers(api: OfferApi) -> list[Offer]:
    offers = await api.list_my_offers()
    logger.debug("Loaded %d offers", len(offers))
    return offers


async def list_my_contracts(api: ContractApi) -> list[Contract]:
    contracts = await api.my_contracts()
    logger.debug("Loaded %d contracts", len(contracts))
    return contracts


class OfferLifecycle:
    """State of one offer as the tenant sees it.

    The displayed status only changes from a server response: a successful
    status update or a re-fetch. Failures set ``error`` and leave the offer as
    it was.
    """

    def __init__(
        self,
        offer: Offer,
        offers: OfferApi,
        contracts: ContractApi,
        *,
        success_ttl: float | None = None,
    ) -> None:
        self.offer = offer
        self._offers = offers
        self._contracts = contracts
        self._success_ttl = success_ttl if success_ttl is not None else settings.SUCCESS_MESSAGE_TTL

        self.accepting = False
        self.selected_gateway: PaymentGateway | None = None
        self.is_submitting = False
        self.eligibility: ContractEligibility | None = None
        self.is_signing = False
        self.is_generating = False
        self.error: str | None = None
        self.success: str | None = None
        self._success_task: asyncio.Task[None] | None = None

    @property
    def status(self) -> str:
        return self.offer.status

    # -- accept / reject ----------------------------------------------------

    def begin_accept(self) -> bool:
        """Open gateway selection. Nothing is sent until ``confirm_accept``."""
        try:
            assert_tenant_transition(self.status, OfferStatus.ACCEPTED)
        except ConflictError as exc:
            self.error = exc.detail
            return False
        self.accepting = True
        self.selected_gateway = None
        self.error = None
        return True

    def select_gateway(self, gateway: str | PaymentGateway | None) -> bool:
        try:
            self.selected_gateway = parse_gateway(gateway)
        except ValidationError as exc:
            self.selected_gateway = None
            self.error = exc.detail
            return False
        self.error = None
        return True

    def cancel_accept(self) -> None:
        self.accepting = False
        self.selected_gateway = None
        self.error = None

    async def confirm_accept(self) -> bool:
        try:
            assert_tenant_transition(self.status, OfferStatus.ACCEPTED)
            gateway = parse_gateway(self.selected_gateway)
        except (ConflictError, ValidationError) as exc:
            self.error = exc.detail
            return False
        ok = await self._submit(OfferStatus.ACCEPTED, gateway)
        if ok:
            self.accepting = False
            self.selected_gateway = None
        return ok

    async def reject(self) -> bool:
        try:
            assert_tenant_transition(self.status, OfferStatus.REJECTED)
        except ConflictError as exc:
            self.error = exc.detail
            return False
        return await self._submit(OfferStatus.REJECTED, None)

    async def _submit(self, target: OfferStatus, gateway: PaymentGateway | None) -> bool:
        if self.is_submitting:
            return False
        self.is_submitting = True
        self.error = None
        try:
            updated = await self._offers.update_status(
                UpdateOfferStatusDTO(
                    offer_id=OfferId(self.offer.id),
                    status=target,
                    preferred_payment_gateway=gateway,
                )
            )
        except AppError as exc:
            self.error = error_message(exc, "Failed to update offer status")
            logger.warning("Offer %s -> %s failed: %s", self.offer.id, target, self.error)
            return False
        finally:
            self.is_submitting = False
        self.offer = updated
        logger.info("Offer %s is now %s", updated.id, updated.status)
        if target == OfferStatus.ACCEPTED:
            self._flash("Offer accepted. Proceed to payment to secure the rental.")
        else:
            self._flash("Offer rejected.")
        return True

    # -- server-driven state ------------------------------------------------

    async def refresh(self) -> bool:
        """Re-fetch the tenant's offers. The only way to observe PAID."""
        try:
            offers = await list_my_offers(self._offers)
        except AppError as exc:
            self.error = error_message(exc, "Failed to refresh offer")
            return False
        for offer in offers:
            if offer.id == self.offer.id:
                self.offer = offer
                break
        else:
            logger.warning("Offer %s no longer listed", self.offer.id)
            return False
        if self.status == OfferStatus.PAID:
            await self.load_eligibility()
        return True

    async def load_eligibility(self) -> ContractEligibility | None:
        if self.status != OfferStatus.PAID:
            self.eligibility = None
            return None
        try:
            self.eligibility = await self._fetch_eligibility()
        except AppError as exc:
            self.error = error_message(exc, "Failed to check contract status")
        return self.eligibility

    async def _fetch_eligibility(self) -> ContractEligibility:
        return await self._contracts.eligibility(RentalRequestId(self.offer.rental_request_id))

    # -- contract -----------------------------------------------------------

    async def generate_contract(self) -> bool:
        """Ask the server to draw up the contract once payment has gone through."""
        if self.is_generating:
            return False
        eligibility = self.eligibility
        if self.status != OfferStatus.PAID or eligibility is None or not eligibility.can_generate:
            self.error = "Contract is not available yet"
            return False
        if eligibility.contract_id is not None:
            self.error = "Contract has already been generated"
            return False
        self.is_generating = True
        self.error = None
        try:
            try:
                contract = await self._contracts.generate(
                    RentalRequestId(self.offer.rental_request_id)
                )
            except AppError as exc:
                self.error = error_message(exc, "Failed to generate contract")
                return False
            logger.info("Contract %s generated for offer %s", contract.contract_number, self.offer.id)
            await self.load_eligibility()
        finally:
            self.is_generating = False
        self._flash("Contract generated successfully!")
        return True

    async def sign_contract(self, signature: str | None = None) -> bool:
        """Sign once. The latch is released only after eligibility is re-read."""
        if self.is_signing:
            return False
        eligibility = self.eligibility
        if eligibility is None or eligibility.state != EligibilityState.UNSIGNED:
            self.error = (
                "Contract is already signed"
                if eligibility is not None and eligibility.state == EligibilityState.SIGNED
                else "Contract is not available yet"
            )
            return False
        if not eligibility.contract_id:
            self.error = "Contract is not available yet"
            return False
        self.is_signing = True
        self.error = None
        try:
            try:
                await self._contracts.sign(ContractId(eligibility.contract_id), signature)
            except AppError as exc:
                self.error = error_message(exc, "Failed to sign contract")
                return False
            try:
                self.eligibility = await self._fetch_eligibility()
            except AppError as exc:
                # The server accepted the signature; only the re-read failed.
                logger.warning("Could not re-read contract state for offer %s: %s", self.offer.id, exc.detail)
                self.eligibility = replace(eligibility, state=EligibilityState.SIGNED)
                self.error = "Contract signed, but its status could not be refreshed"
                return True
            await self.refresh_offer_quietly()
        finally:
            self.is_signing = False
        self._flash("Contract signed.")
        return True

    async def refresh_offer_quietly(self) -> None:
        try:
            offers = await self._offers.list_my_offers()
        except AppError:
            logger.warning("Could not refresh offer %s after signing", self.offer.id, exc_info=True)
            return
        for offer in offers:
            if offer.id == self.offer.id:
                self.offer = offer

    async def download_contract(self) -> bytes | None:
        eligibility = self.eligibility
        if eligibility is None or eligibility.contract_id is None:
            self.error = "Contract is not available yet"
            return None
        try:
            data = await self._contracts.download(ContractId(eligibility.contract_id))
        except AppError as exc:
            self.error = error_message(exc, "Failed to download contract")
            return None
        self.error = None
        return data

    async def preview_contract(self) -> str | None:
        try:
            html = await self._contracts.preview(OfferId(self.offer.id))
        except AppError as exc:
            self.error = error_message(exc, "Failed to load contract preview")
            return None
        self.error = None
        return html

    def available_actions(self) -> frozenset[OfferAction]:
        if self.status == OfferStatus.PENDING:
            return frozenset({OfferAction.ACCEPT, OfferAction.REJECT})
        if self.status != OfferStatus.PAID or self.eligibility is None:
            return frozenset()
        if self.eligibility.state == EligibilityState.UNSIGNED:
            return frozenset({OfferAction.SIGN, OfferAction.DOWNLOAD})
        if self.eligibility.state == EligibilityState.SIGNED:
            return frozenset({OfferAction.DOWNLOAD})
        if self.eligibility.can_generate and self.eligibility.contract_id is None:
            return frozenset({OfferAction.GENERATE})
        return frozenset()

    # -- transient messages -------------------------------------------------

    def _flash(self, message: str) -> None:
        self.success = message
        if self._success_task is not None and not self._success_task.done():
            self._success_task.cancel()
        self._success_task = asyncio.create_task(
            self._expire_success(message), name="offer-success-ttl",
        )

    async def _expire_success(self, message: str) -> None:
        await asyncio.sleep(self._success_ttl)
        if self.success == message:
            self.success = None

    def dismiss_error(self) -> None:
        self.error = None

    async def close(self) -> None:
        task = self._success_task
        self._success_task = None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
