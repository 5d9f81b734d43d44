"""Indeed DOM selector constants with fallbacks.

Ordered by stability: data-testid > semantic classes > generic fallbacks.
Each constant is a tuple so callers iterate until a match is found.
"""

# --- Results container (waited for before parsing) ---
CONTAINER_SELECTORS: tuple[str, ...] = (
    "#mosaic-provider-jobcards .job_seen_beacon",
    ".jobsearch-ResultsList .job_seen_beacon",
    ".mosaic-zone .result",
    '[data-testid="job-card"]',
    ".jobCard",
)

# --- Job card ---
CARD_SELECTORS: tuple[str, ...] = (
    ".job_seen_beacon",
    '[data-testid="job-card"]',
    ".result",
    ".jobCard",
)

# --- Fields inside a card ---
TITLE_SELECTORS: tuple[str, ...] = (
    "h2.jobTitle a span",
    ".jobTitle span[title]",
    'a[data-testid="job-title"]',
    ".job-title",
    "h2 span",
)

COMPANY_SELECTORS: tuple[str, ...] = (
    '[data-testid="company-name"]',
    ".companyName",
    ".company",
)

LOCATION_SELECTORS: tuple[str, ...] = (
    '[data-testid="text-location"]',
    ".companyLocation",
    ".location",
)

SALARY_SELECTORS: tuple[str, ...] = (
    '[data-testid="attribute_snippet_testid"]',
    ".salary-snippet",
    ".salaryText",
    ".metadata.salary-snippet-container",
)

LINK_SELECTORS: tuple[str, ...] = (
    "h2.jobTitle a",
    'a[data-testid="job-title"]',
    "a.jcs-JobTitle",
    ".jobTitle a",
)

SNIPPET_SELECTORS: tuple[str, ...] = (
    '[data-testid="jobsnippet_footer"]',
    ".job-snippet",
)

POSTED_DATE_SELECTORS: tuple[str, ...] = (
    '[data-testid="myJobsStateDate"]',
    "span.date",
    ".date",
)

# --- Link-only fallback when cards cannot be parsed ---
FALLBACK_LINK_SELECTOR: str = 'a[href*="viewjob"]'

# --- Popups that cover the results list ---
POPUP_CLOSE_SELECTORS: tuple[str, ...] = (
    'button[aria-label="Close"]',
    ".popover-x-button",
    ".icl-CloseButton",
    '[data-testid="close-button"]',
    "button.close",
)
