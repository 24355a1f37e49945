"""
Email merge-field templating.

Templates are plain text with ``{{fieldName}}`` placeholders.  ``render``
substitutes them literally: there is no grammar, no escaping, no nesting and
no conditionals.  A placeholder with no value renders as an empty string.

Four built-in fields (``companyName``, ``supportEmail``, ``currentDate``,
``currentYear``) are applied last and win over caller-supplied values of the
same name.
"""

import re
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from irm.core.config import settings

PLACEHOLDER_RE = re.compile(r"\{\{(\w+)\}\}")

MERGE_FIELDS = (
    "investorName",
    "firstName",
    "lastName",
    "email",
    "phone",
    "investorId",
    "investmentAmount",
    "bondUnits",
    "investmentDate",
    "maturityDate",
    "username",
    "password",
    "investorPortalUrl",
    "adminPortalUrl",
    "agreementUrl",
    "reportMonth",
    "reportDate",
    "totalInvested",
    "interestEarned",
    "interestDisbursed",
    "nextPayout",
    "investmentSummary",
    "companyName",
    "supportEmail",
    "currentDate",
    "currentYear",
)


def format_date(value: date) -> str:
    """en-IN short date: day/month/year without zero padding."""
    return f"{value.day}/{value.month}/{value.year}"


def builtin_fields(today: Optional[date] = None) -> Dict[str, str]:
    today = today or date.today()
    return {
        "companyName": settings.COMPANY_NAME,
        "supportEmail": settings.SUPPORT_EMAIL,
        "currentDate": format_date(today),
        "currentYear": str(today.year),
    }


def render(template: str, fields: Mapping[str, Any], today: Optional[date] = None) -> str:
    """Fill ``{{name}}`` placeholders from ``fields`` and the built-ins."""
    values = {key: "" if value is None else str(value) for key, value in fields.items()}
    values.update(builtin_fields(today))
    return PLACEHOLDER_RE.sub(lambda m: values.get(m.group(1), ""), template)


def format_inr(amount) -> str:
    """
    Indian-grouped rupee amount, e.g. ``₹12,34,567`` or ``₹1,500.50``.

    Paise are shown only when non-zero.
    """
    value = Decimal(str(amount)).quantize(Decimal("0.01"), ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    whole, _, paise = f"{abs(value):.2f}".partition(".")
    head, tail = whole[:-3], whole[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    grouped = ",".join(groups + [tail]) if groups else tail
    suffix = "" if paise == "00" else f".{paise}"
    return f"{sign}₹{grouped}{suffix}"


# ────────────────────────────────────────────────────────────────────────────
# Named templates
# ────────────────────────────────────────────────────────────────────────────


class TemplateName(str, Enum):
    INVESTOR_CREATED = "investor_created"
    WELCOME = "welcome"
    PROFILE_UPDATE = "profile_update"
    MATURITY = "maturity"
    AGREEMENT = "agreement"
    MONTHLY_REPORT = "monthly_report"


INVESTOR_CREATED = """\
{{companyName}}
New Investor Account Created

Investor Details:
Name: {{investorName}}
Email: {{email}}
Phone: {{phone}}
Investment Amount: {{investmentAmount}}
Bond Units: {{bondUnits}}
Investment Date: {{investmentDate}}

Login Credentials:
Username: {{username}}
Password: {{password}}

Investor Portal Access:
{{investorPortalUrl}}

Important Information:
- Please share these credentials securely with the investor
- Investor can access their portfolio and track returns through the portal
- Initial investment lock-in period: 3 years
- Interest rates vary by year: 0% (Year 1), 6% (Year 2), 9% (Year 3), 12% (Year 4), 18% (Year 5+)

Best regards,
IRM System Team
{{companyName}}

Support: {{supportEmail}}
Generated on: {{currentDate}}"""

WELCOME = """\
Welcome to {{companyName}}!

Dear {{firstName}},

Welcome to our Investment Relationship Management platform!

Your Account Details:
Name: {{investorName}}
Email: {{email}}
Investor ID: {{investorId}}

Investment Summary:
Amount: {{investmentAmount}}
Bond Units: {{bondUnits}}
Start Date: {{investmentDate}}

Your Login Credentials:
Username: {{username}}
Password: {{password}}

Access Your Portfolio:
{{investorPortalUrl}}

Keep your login credentials secure and contact support with any questions.

Best regards,
The IRM Team
{{companyName}}

Support: {{supportEmail}}
{{currentDate}}"""

PROFILE_UPDATE = """\
{{companyName}}
Investor Profile Update Notification

Investor Information:
Name: {{investorName}} (ID: {{investorId}})
Email: {{email}}
Phone: {{phone}}

The investor updated their profile information on {{currentDate}}.

Please review the changes in the admin portal:
{{adminPortalUrl}}

Best regards,
IRM System Team
{{companyName}}

Support: {{supportEmail}}"""

MATURITY = """\
{{companyName}}
Investment Maturity Notification

Investor: {{investorName}}
Investment Amount: {{investmentAmount}}
Bond Units: {{bondUnits}}
Maturity Date: {{maturityDate}}

Congratulations! Your investment has reached maturity.
Please contact us to discuss payout options and renewal opportunities.

Access your portfolio:
{{investorPortalUrl}}

Best regards,
IRM System Team
{{companyName}}

Contact us: {{supportEmail}}
{{currentDate}}"""

AGREEMENT = """\
{{companyName}}
Investment Agreement Ready for Signature

Dear {{firstName}},

Your investment agreement for {{bondUnits}} bond unit(s) totalling
{{investmentAmount}} is ready. Please review and sign it here:

{{agreementUrl}}

Best regards,
IRM System Team
{{companyName}}

Support: {{supportEmail}}
{{currentDate}}"""

MONTHLY_REPORT = """\
{{companyName}}
Monthly Investment Report: {{reportMonth}}

Dear {{firstName}},

Here is the position of your bond portfolio as of {{reportDate}}.

Total Invested: {{totalInvested}}
Bond Units: {{bondUnits}}
Interest Earned Till Date: {{interestEarned}}
Interest Paid Out Till Date: {{interestDisbursed}}
Next Payout: {{nextPayout}}

Your Investments:
{{investmentSummary}}

Statements and full details are in your portal:
{{investorPortalUrl}}

Best regards,
IRM System Team
{{companyName}}

Support: {{supportEmail}}
{{currentDate}}"""

TEMPLATES: Dict[TemplateName, str] = {
    TemplateName.INVESTOR_CREATED: INVESTOR_CREATED,
    TemplateName.WELCOME: WELCOME,
    TemplateName.PROFILE_UPDATE: PROFILE_UPDATE,
    TemplateName.MATURITY: MATURITY,
    TemplateName.AGREEMENT: AGREEMENT,
    TemplateName.MONTHLY_REPORT: MONTHLY_REPORT,
}

SUBJECTS: Dict[TemplateName, str] = {
    TemplateName.INVESTOR_CREATED: "New Investor Account Created - {{investorName}}",
    TemplateName.WELCOME: "Welcome to {{companyName}}",
    TemplateName.PROFILE_UPDATE: "Profile Updated - {{investorName}}",
    TemplateName.MATURITY: "Your investment has matured",
    TemplateName.AGREEMENT: "Investment Agreement - Signature Required",
    TemplateName.MONTHLY_REPORT: "Monthly Investment Report - {{reportMonth}}",
}

AGREEMENT_DOCUMENT = """\
INVESTMENT AGREEMENT

This agreement is made on {{currentDate}} between {{companyName}} ("the
Company") and {{investorName}} ("the Investor"), investor ID {{investorId}},
email {{email}}, phone {{phone}}.

1. The Investor subscribes to {{bondUnits}} bond unit(s) for a total of
   {{investmentAmount}}, effective {{investmentDate}}.
2. The investment is locked in for three years and matures on {{maturityDate}}.
3. Interest is simple and annual on the original principal: 0% in year 1,
   6% in year 2, 9% in year 3, 12% in year 4 and 18% from year 5.
4. A milestone bonus of 100% of principal is paid after years 5 and 10.

Signed electronically by the Investor.

Queries: {{supportEmail}}"""
