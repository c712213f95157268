"""Field catalogs: the importable attributes of each resource type.

Catalogs are plain data keyed by resource type. The mapper, validator and
template generator receive a catalog explicitly; the registry only decides
which table is current and lets operators swap it at runtime.
"""
import enum
import json
import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, TypeAdapter

from resource_hub.imports.errors import UnknownResourceTypeError

logger = logging.getLogger(__name__)


class FieldType(str, enum.Enum):
    text = "text"
    number = "number"
    date = "date"
    select = "select"
    multi_select = "multi-select"
    checkbox = "checkbox"
    textarea = "textarea"


class FieldFormat(str, enum.Enum):
    url = "url"
    email = "email"


class FieldOption(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: str
    label: str


class FieldDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    label: str
    type: FieldType = FieldType.text
    required: bool = False
    options: tuple[FieldOption, ...] = ()
    format: FieldFormat | None = None
    # Base fields are top-level record attributes; the rest go into record["data"]
    base: bool = False


Catalog = tuple[FieldDefinition, ...]


def _opts(*pairs: tuple[str, str]) -> tuple[FieldOption, ...]:
    return tuple(FieldOption(value=v, label=lbl) for v, lbl in pairs)


def _f(name: str, label: str, type: FieldType = FieldType.text, **kwargs) -> FieldDefinition:
    return FieldDefinition(name=name, label=label, type=type, **kwargs)


# ─── Shared record attributes ───

TITLE = _f("title", "Title", required=True, base=True)
URL = _f("url", "URL", format=FieldFormat.url, base=True)
SUMMARY = _f("summary", "Summary", FieldType.textarea, base=True)
TAGS = _f("tags", "Tags", FieldType.multi_select, base=True)
IMAGE_URL = _f("image_url", "Image URL", format=FieldFormat.url, base=True)


def _catalog(*specific: FieldDefinition) -> Catalog:
    return (TITLE, URL, SUMMARY, *specific, TAGS, IMAGE_URL)


US_STATES = _opts(
    ("AL", "Alabama"), ("AK", "Alaska"), ("AZ", "Arizona"), ("AR", "Arkansas"),
    ("CA", "California"), ("CO", "Colorado"), ("CT", "Connecticut"), ("DE", "Delaware"),
    ("FL", "Florida"), ("GA", "Georgia"), ("HI", "Hawaii"), ("ID", "Idaho"),
    ("IL", "Illinois"), ("IN", "Indiana"), ("IA", "Iowa"), ("KS", "Kansas"),
    ("KY", "Kentucky"), ("LA", "Louisiana"), ("ME", "Maine"), ("MD", "Maryland"),
    ("MA", "Massachusetts"), ("MI", "Michigan"), ("MN", "Minnesota"), ("MS", "Mississippi"),
    ("MO", "Missouri"), ("MT", "Montana"), ("NE", "Nebraska"), ("NV", "Nevada"),
    ("NH", "New Hampshire"), ("NJ", "New Jersey"), ("NM", "New Mexico"), ("NY", "New York"),
    ("NC", "North Carolina"), ("ND", "North Dakota"), ("OH", "Ohio"), ("OK", "Oklahoma"),
    ("OR", "Oregon"), ("PA", "Pennsylvania"), ("RI", "Rhode Island"), ("SC", "South Carolina"),
    ("SD", "South Dakota"), ("TN", "Tennessee"), ("TX", "Texas"), ("UT", "Utah"),
    ("VT", "Vermont"), ("VA", "Virginia"), ("WA", "Washington"), ("WV", "West Virginia"),
    ("WI", "Wisconsin"), ("WY", "Wyoming"),
)


DEFAULT_CATALOGS: dict[str, Catalog] = {
    "universities": _catalog(
        _f("program_name", "Program Name", required=True),
        _f("city", "City", required=True),
        _f("state", "State", FieldType.select, required=True, options=US_STATES),
        _f("country", "Country"),
        _f("research_focus", "Research Focus", FieldType.textarea),
        _f("contact_email", "Contact Email", format=FieldFormat.email),
        _f("contact_phone", "Contact Phone"),
    ),
    "organizations": _catalog(
        _f("org_type", "Organization Type", FieldType.select, required=True, options=_opts(
            ("nonprofit", "Nonprofit"), ("trade", "Trade Association"),
            ("cooperative", "Cooperative"), ("government", "Government Agency"),
            ("research", "Research Institution"), ("commercial", "Commercial Organization"),
        )),
        _f("functions", "Functions", FieldType.multi_select, required=True, options=_opts(
            ("advocacy", "Advocacy"), ("education", "Education"), ("research", "Research"),
            ("networking", "Networking"), ("certification", "Certification"),
            ("marketing", "Marketing"), ("funding", "Funding"),
        )),
        _f("hq_location", "HQ Location", required=True),
        _f("service_area", "Service Area", FieldType.select, options=_opts(
            ("local", "Local"), ("state", "State"), ("regional", "Regional"),
            ("national", "National"), ("international", "International"),
        )),
        _f("membership_cost", "Membership Cost"),
    ),
    "grants": _catalog(
        _f("agency", "Granting Agency", required=True),
        _f("grant_amount_min", "Min Amount", FieldType.number),
        _f("grant_amount_max", "Max Amount", FieldType.number),
        _f("application_deadline", "Deadline", FieldType.date),
        _f("focus_areas", "Focus Areas", FieldType.textarea),
        _f("eligibility_geo", "Geographic Eligibility"),
        _f("eligibility_type", "Eligible Types", FieldType.multi_select, options=_opts(
            ("individual", "Individual Growers"), ("nonprofit", "Nonprofits"),
            ("forprofit", "For-profit Businesses"), ("university", "Universities"),
            ("government", "Government Entities"), ("cooperative", "Cooperatives"),
        )),
        _f("match_required", "Match Required", FieldType.checkbox),
        _f("match_percentage", "Match %", FieldType.number),
    ),
    "tax-incentives": _catalog(
        _f("program_name", "Program Name", required=True),
        _f("admin_agency", "Admin Agency", required=True),
        _f("incentive_type", "Incentive Type", FieldType.select, options=_opts(
            ("tax_credit", "Tax Credit"), ("tax_deduction", "Tax Deduction"),
            ("tax_exemption", "Tax Exemption"),
            ("accelerated_depreciation", "Accelerated Depreciation"),
            ("property_tax_reduction", "Property Tax Reduction"),
        )),
        _f("eligibility_requirements", "Eligibility", FieldType.textarea),
        _f("application_process", "Application Process", FieldType.textarea),
        # Free text: benefits are often phrased, e.g. "30% of costs"
        _f("benefit_amount", "Benefit Amount"),
        _f("expiration_date", "Expiration Date", FieldType.date),
    ),
    "tools-templates": _catalog(
        _f("tool_category", "Category", FieldType.select, required=True, options=_opts(
            ("operations", "Operations Management"), ("climate", "Climate Control"),
            ("financial", "Financial Planning"), ("crop", "Crop Management"),
            ("marketing", "Marketing"), ("compliance", "Compliance"), ("hr", "Human Resources"),
        )),
        _f("format", "Format", FieldType.select, options=_opts(
            ("spreadsheet", "Spreadsheet (Excel/Google Sheets)"), ("pdf", "PDF Document"),
            ("word", "Word Document"), ("software", "Software/App"),
            ("online_tool", "Online Tool"), ("template", "Template"),
        )),
        _f("cost_model", "Cost Model", FieldType.select, options=_opts(
            ("free", "Free"), ("freemium", "Freemium"), ("one_time", "One-time Purchase"),
            ("subscription", "Subscription"), ("per_user", "Per User"),
        )),
        _f("price", "Price"),
        _f("features", "Features", FieldType.textarea),
        _f("system_requirements", "System Requirements"),
    ),
    "learning": _catalog(
        _f("course_type", "Course Type", FieldType.select, required=True, options=_opts(
            ("online_course", "Online Course"), ("webinar", "Webinar"),
            ("workshop", "Workshop"), ("certification", "Certification Program"),
            ("degree", "Degree Program"), ("tutorial", "Tutorial"),
            ("video_series", "Video Series"),
        )),
        _f("provider", "Provider", required=True),
        _f("duration", "Duration"),
        _f("skill_level", "Skill Level", FieldType.select, options=_opts(
            ("beginner", "Beginner"), ("intermediate", "Intermediate"),
            ("advanced", "Advanced"), ("all_levels", "All Levels"),
        )),
        _f("cost", "Cost"),
        _f("certificate", "Certificate Offered", FieldType.checkbox),
        _f("ceu_credits", "CEU Credits"),
        _f("language", "Language", FieldType.select, options=_opts(
            ("english", "English"), ("spanish", "Spanish"),
            ("french", "French"), ("multilingual", "Multilingual"),
        )),
    ),
    "blogs-bulletins": _catalog(
        _f("publication_type", "Publication Type", FieldType.select, required=True, options=_opts(
            ("blog", "Blog"), ("bulletin", "Bulletin"), ("newsletter", "Newsletter"),
            ("magazine", "Magazine"), ("journal", "Journal"),
        )),
        _f("publisher", "Publisher", required=True),
        _f("frequency", "Frequency", FieldType.select, options=_opts(
            ("daily", "Daily"), ("weekly", "Weekly"), ("biweekly", "Bi-weekly"),
            ("monthly", "Monthly"), ("quarterly", "Quarterly"), ("irregular", "Irregular"),
        )),
        _f("subscription_required", "Subscription Required", FieldType.checkbox),
        _f("subscription_cost", "Subscription Cost"),
        _f("focus_topics", "Focus Topics", FieldType.textarea),
    ),
    "industry-news": _catalog(
        _f("news_source", "News Source", required=True),
        _f("source_type", "Source Type", FieldType.select, options=_opts(
            ("news_site", "News Website"), ("trade_pub", "Trade Publication"),
            ("newsletter", "Newsletter"), ("podcast", "Podcast"),
            ("youtube", "YouTube Channel"), ("social_media", "Social Media"),
        )),
        _f("update_frequency", "Update Frequency", FieldType.select, options=_opts(
            ("realtime", "Real-time"), ("daily", "Daily"),
            ("weekly", "Weekly"), ("monthly", "Monthly"),
        )),
        _f("coverage", "Coverage Focus", FieldType.multi_select, options=_opts(
            ("market_prices", "Market Prices"), ("technology", "Technology"),
            ("policy", "Policy & Regulation"), ("research", "Research"),
            ("events", "Events"), ("business", "Business News"),
        )),
        _f("access_type", "Access Type", FieldType.select, options=_opts(
            ("free", "Free"), ("registration", "Free with Registration"),
            ("paid", "Paid Subscription"), ("partial", "Partial Free/Paid"),
        )),
    ),
}


_catalog_file_adapter = TypeAdapter(dict[str, list[FieldDefinition]])


class CatalogRegistry:
    """Holds the current catalog table; replaceable without a restart."""

    def __init__(self, catalogs: dict[str, Catalog] | None = None):
        self._catalogs: dict[str, Catalog] = dict(catalogs if catalogs is not None else DEFAULT_CATALOGS)

    def resource_types(self) -> list[str]:
        return list(self._catalogs)

    def get(self, resource_type: str) -> Catalog:
        try:
            return self._catalogs[resource_type]
        except KeyError:
            raise UnknownResourceTypeError(resource_type) from None

    def __contains__(self, resource_type: object) -> bool:
        return resource_type in self._catalogs

    def replace(self, catalogs: dict[str, Catalog]) -> None:
        """Swap the whole table. Sessions already holding a catalog keep theirs."""
        for resource_type, fields in catalogs.items():
            names = [f.name for f in fields]
            if len(names) != len(set(names)):
                raise ValueError(f"Duplicate field names in catalog '{resource_type}'")
        self._catalogs = dict(catalogs)
        logger.info("Field catalogs replaced: %s", ", ".join(self._catalogs))

    def load_file(self, path: str | Path) -> None:
        """Replace the table from a JSON file of {resource_type: [field, ...]}."""
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        parsed = _catalog_file_adapter.validate_python(raw)
        self.replace({rt: tuple(fields) for rt, fields in parsed.items()})
