"""Bilingual (English / Polish) HTML rendering of a ContractDocument."""
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from html import escape
from string import Template

from rental_client.services.contract_document import ContractDocument, PartyDetails

SIGNATURE_UNAVAILABLE = "Signature unavailable / Podpis niedostępny"

_PAGE = Template("""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>Lease Agreement $contract_number</title>
</head>
<body>
<div class="contract">
  <h1>Lease Agreement / Umowa Najmu</h1>
  <p class="meta">No. $contract_number &middot; $issued_date $issued_time</p>

  <div class="parties">
    <div class="party"><div class="party-title">Landlord / Wynajmujący</div>$landlord</div>
    <div class="party"><div class="party-title">Tenant / Najemca</div>$tenant</div>
  </div>

  <div class="section">
    <div class="section-title">§1. Subject of the Agreement / Przedmiot Umowy</div>
    <p>This lease agreement is concluded between the Landlord and the Tenant for the rental of the property ($property_type) located at $property_address.</p>
    <p>Niniejsza umowa najmu zostaje zawarta między Wynajmującym a Najemcą w celu wynajęcia nieruchomości ($property_type) położonej przy $property_address.</p>
  </div>

  <div class="section">
    <div class="section-title">§2. Lease Term / Okres Najmu</div>
    <p>The lease term is $lease_duration months, starting from $lease_start and ending on $lease_end.</p>
    <p>Okres najmu wynosi $lease_duration miesięcy, rozpoczynając się od $lease_start i kończąc się $lease_end.</p>
  </div>

  <div class="section">
    <div class="section-title">§3. Rent and Deposit / Czynsz i Kaucja</div>
    <p>a) The monthly rent is $rent_amount PLN, payable in advance by the 10th day of each month.<br>
       b) The security deposit is $deposit_amount PLN, paid upon signing this agreement.</p>
    <p>a) Miesięczny czynsz wynosi $rent_amount PLN, płatny z góry do 10-go dnia każdego miesiąca.<br>
       b) Kaucja wynosi $deposit_amount PLN i została wpłacona przy podpisaniu niniejszej umowy.</p>
  </div>

  <div class="section">
    <div class="section-title">§4. Payment Schedule / Harmonogram Płatności</div>
    <table class="payment-table">
      <thead><tr><th>No. / Nr</th><th>Due Date / Termin</th><th>Amount / Kwota</th><th>Description</th></tr></thead>
      <tbody>
$schedule_rows
      </tbody>
    </table>
  </div>

  <div class="section">
    <div class="section-title">§5. Utilities / Media</div>
    <p>Utilities are included in the rent amount.</p>
    <p>Media są wliczone w kwotę czynszu.</p>
  </div>

  <div class="section">
    <div class="section-title">§6. Tenant Protection / Ochrona Najemcy</div>
    <p>The tenant may request a full refund within 24 hours after check-in if the property does not match its description or has significant issues.</p>
    <p>Najemca może zażądać pełnego zwrotu w ciągu 24 godzin po zameldowaniu, jeśli nieruchomość nie odpowiada opisowi lub występują istotne problemy.</p>
  </div>

  <div class="section">
    <div class="section-title">§7. Signatures / Podpisy</div>
    <div class="signature-section">
      <div class="signature-box"><div class="signature-name">Landlord / Wynajmujący</div><div>$landlord_name</div>$landlord_signature<div>Date: $issued_date</div></div>
      <div class="signature-box"><div class="signature-name">Tenant / Najemca</div><div>$tenant_name</div>$tenant_signature<div>Date: $issued_date</div></div>
    </div>
  </div>
</div>
</body>
</html>
""")

_ROW = Template(
    "        <tr><td>$number</td><td>$due_date</td>"
    "<td class=\"amount\">$amount PLN</td><td>$description</td></tr>"
)


def format_date(value: date | datetime) -> str:
    """``March 5, 2026``"""
    return f"{value:%B} {value.day}, {value.year}"


def format_amount(value: Decimal) -> str:
    if value == value.to_integral_value():
        return str(value.quantize(Decimal("1")))
    return str(value.quantize(Decimal("0.01")))


def _party_html(party: PartyDetails) -> str:
    lines = [
        f"Name / Imię i nazwisko: {escape(party.name)}",
        f"Email: {escape(party.email)}",
        f"Phone / Telefon: {escape(party.phone)}",
        "Address / Adres: "
        + ", ".join(escape(v) for v in (party.street, party.city, party.zip_code, party.country)),
        f"PESEL: {escape(party.pesel)}",
    ]
    if party.passport_number:
        lines.append(f"Passport / Paszport: {escape(party.passport_number)}")
    if party.residence_card_number:
        lines.append(f"Residence card / Karta pobytu: {escape(party.residence_card_number)}")
    return "<div class=\"party-details\">" + "<br>".join(lines) + "</div>"


def _signature_html(signature: str | None, who: str) -> str:
    if not signature:
        return f"<div class=\"signature-missing\">{SIGNATURE_UNAVAILABLE}</div>"
    return (
        f"<img class=\"signature-image\" alt=\"{who} signature\" "
        f"src=\"data:image/png;base64,{escape(signature, quote=True)}\">"
    )


def render_contract_html(document: ContractDocument) -> str:
    rows = "\n".join(
        _ROW.substitute(
            number=p.number,
            due_date=format_date(p.due_date),
            amount=format_amount(p.amount),
            description=escape(p.description),
        )
        for p in document.payment_schedule
    )
    return _PAGE.substitute(
        contract_number=escape(document.contract_number),
        issued_date=format_date(document.issued_at),
        issued_time=f"{document.issued_at:%H:%M:%S}",
        landlord=_party_html(document.landlord),
        tenant=_party_html(document.tenant),
        property_address=escape(document.property_address),
        property_type=escape(document.property_type),
        lease_duration=document.lease_duration,
        lease_start=format_date(document.lease_start),
        lease_end=format_date(document.lease_end),
        rent_amount=format_amount(document.rent_amount),
        deposit_amount=format_amount(document.deposit_amount),
        schedule_rows=rows,
        landlord_name=escape(document.landlord.name),
        tenant_name=escape(document.tenant.name),
        landlord_signature=_signature_html(document.landlord_signature, "Landlord"),
        tenant_signature=_signature_html(document.tenant_signature, "Tenant"),
    )
