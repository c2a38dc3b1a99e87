"""
Built-in document templates for the draft generator.

Templates are plain text with ``{field}`` placeholders. A field the user did
not fill in is rendered as ``[Field Name]`` so the gap is visible in the draft.
"""
from datetime import datetime
from typing import Dict, Optional

from app.utils.helpers import format_date

TEMPLATE_NAMES: Dict[str, str] = {
    "rent": "Rental Agreement",
    "sale": "Sale Deed",
    "partnership": "Partnership Deed",
    "employment": "Employment Contract",
    "nda": "Non-Disclosure Agreement",
    "loan": "Loan Agreement",
    "legal_notice": "Legal Notice",
    "affidavit": "Affidavit",
}

_TEMPLATES: Dict[str, str] = {
    "rent": """RENTAL AGREEMENT

This Rental Agreement is made on {date} at {place}

BETWEEN

{landlordName}, residing at {landlordAddress} (hereinafter called the "LANDLORD")

AND

{tenantName}, residing at {tenantAddress} (hereinafter called the "TENANT")

1. The Landlord lets the premises situated at {propertyAddress} to the Tenant for a period of {duration} commencing from {startDate}.
2. The monthly rent is Rs. {rentAmount}, payable on or before the {dueDay} day of each month.
3. The Tenant has paid a security deposit of Rs. {depositAmount}, refundable at the end of the tenancy after adjusting dues, if any.
4. The Tenant shall use the premises for residential purposes only and shall not sub-let them.
5. Either party may terminate this agreement by giving {noticePeriod} written notice.

IN WITNESS WHEREOF the parties have signed this agreement on the date first written above.

LANDLORD                                TENANT
""",
    "sale": """SALE DEED

This Deed of Sale is executed on {date} at {place}

BY

{sellerName}, residing at {sellerAddress} (hereinafter called the "VENDOR")

IN FAVOUR OF

{buyerName}, residing at {buyerAddress} (hereinafter called the "PURCHASER")

1. The Vendor is the absolute owner of the property described in the Schedule below.
2. In consideration of Rs. {saleAmount}, received in full, the Vendor conveys the property to the Purchaser.
3. The Vendor declares that the property is free from all encumbrances.
4. Possession of the property has been delivered to the Purchaser on this day.

SCHEDULE OF PROPERTY
{propertyDescription}

VENDOR                                  PURCHASER

WITNESSES:
1.
2.
""",
    "partnership": """PARTNERSHIP DEED

This Deed of Partnership is made on {date} at {place} between:

1. {partner1Name}, residing at {partner1Address}
2. {partner2Name}, residing at {partner2Address}

1. The partners carry on business under the name {firmName} at {businessAddress}.
2. The nature of business is {businessNature}.
3. The capital contributed is: {capitalContribution}.
4. Profits and losses shall be shared in the ratio {profitRatio}.
5. The partnership is at will and governed by the Indian Partnership Act, 1932.

PARTNERS
""",
    "employment": """EMPLOYMENT CONTRACT

This Employment Contract is made on {date} between {employerName} (the "EMPLOYER") and {employeeName} (the "EMPLOYEE").

1. The Employee is appointed as {designation} with effect from {startDate}.
2. The Employee shall receive a monthly salary of Rs. {salary}.
3. Working hours are {workingHours}.
4. The probation period is {probationPeriod}.
5. Either party may terminate employment with {noticePeriod} written notice.
6. The Employee shall keep all confidential information of the Employer secret during and after employment.

EMPLOYER                                EMPLOYEE
""",
    "nda": """NON-DISCLOSURE AGREEMENT

This Agreement is made on {date} between {disclosingParty} (the "DISCLOSING PARTY") and {receivingParty} (the "RECEIVING PARTY").

1. Purpose: {purpose}.
2. The Receiving Party shall hold all Confidential Information in strict confidence and use it only for the Purpose.
3. These obligations continue for {duration} from the date of this Agreement.
4. This Agreement is governed by the laws of India, with courts at {jurisdiction} having exclusive jurisdiction.

DISCLOSING PARTY                        RECEIVING PARTY
""",
    "loan": """LOAN AGREEMENT

This Loan Agreement is made on {date} between {lenderName} (the "LENDER") and {borrowerName} (the "BORROWER").

1. The Lender has advanced Rs. {loanAmount} to the Borrower.
2. The loan carries interest at {interestRate} per annum.
3. The Borrower shall repay the loan by {repaymentDate} in {repaymentTerms}.
4. On default, the Lender may recover the outstanding amount with interest through due process of law.

LENDER                                  BORROWER
""",
    "legal_notice": """LEGAL NOTICE

Date: {date}

To,
{recipientName}
{recipientAddress}

Subject: {subject}

Under instructions from my client {clientName}, I hereby serve upon you the following notice:

{details}

You are hereby called upon to {demand} within {complianceDays} days of receipt of this notice, failing which my client shall initiate appropriate legal proceedings against you at your risk as to costs.

Advocate
""",
    "affidavit": """AFFIDAVIT

I, {deponentName}, aged {age}, residing at {address}, do hereby solemnly affirm and state as follows:

1. That I am the deponent herein and am well acquainted with the facts of this case.
2. {statement}

VERIFICATION

Verified at {place} on {date} that the contents of the above affidavit are true and correct to my knowledge and belief, and nothing material has been concealed therefrom.

DEPONENT
""",
}

_GENERIC_TEMPLATE = """{templateName}

Date: {date}

{body}
"""


class _FieldDefaults(dict):
    def __missing__(self, key: str) -> str:
        label = "".join(" " + c if c.isupper() else c for c in key).strip()
        return f"[{label[:1].upper()}{label[1:]}]"


def template_name(draft_type: str) -> str:
    return TEMPLATE_NAMES.get(draft_type, draft_type)


def default_title(draft_type: str, now: Optional[datetime] = None) -> str:
    """e.g. ``Rental Agreement - 19/10/2026``"""
    now = now or datetime.utcnow()
    return f"{template_name(draft_type)} - {format_date(now)}"


def render_draft(draft_type: str, inputs: Dict[str, str], now: Optional[datetime] = None) -> str:
    now = now or datetime.utcnow()
    fields = _FieldDefaults(inputs)
    fields.setdefault("date", format_date(now))

    template = _TEMPLATES.get(draft_type)
    if template is None:
        fields["templateName"] = template_name(draft_type).replace("_", " ").upper()
        fields["body"] = "\n".join(
            f"{key}: {value}" for key, value in inputs.items()
        ) or "[Details]"
        template = _GENERIC_TEMPLATE
    return template.format_map(fields).strip() + "\n"
