"""Amount, date and category guesses from recognized receipt text.

Everything here is a pure function over text. The scores are heuristics tuned
for receipts and utility bills in English and Traditional Chinese; they pick
the most plausible total, not a guaranteed one.
"""

import re
from datetime import date

from ..core.models import OCRResult

CURRENCY_SYMBOLS = ["$", "€", "£", "¥", "NT$", "HK$", "元", "RM", "₹", "₱", "₩", "฿", "₫", "₪", "₽", "₺"]

ENGLISH_AMOUNT_KEYWORDS = [
    "total",
    "amount due",
    "balance due",
    "grand total",
    "subtotal",
    "total amount",
    "payment due",
    "invoice total",
    "receipt total",
]
CHINESE_AMOUNT_KEYWORDS = ["總計", "合計", "總金額", "應付金額", "金額", "款項", "費用總計", "发票总额", "小計", "总额", "合计金额"]

_MONTH_NAMES = "Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec"

# Tried in order; the first structurally valid date wins. Numeric dates are
# read month-first before day-first, so "03/04/2024" is March 4th.
DATE_PATTERNS = [
    re.compile(r"(?P<year>\d{4})[.\-/年](?P<month>\d{1,2})[.\-/月](?P<day>\d{1,2})日?", re.IGNORECASE),
    re.compile(r"(?P<month>\d{1,2})[.\-/月](?P<day>\d{1,2})[.\-/年](?P<year>\d{2,4})日?", re.IGNORECASE),
    re.compile(r"(?P<day>\d{1,2})[.\-/月](?P<month>\d{1,2})[.\-/年](?P<year>\d{2,4})日?", re.IGNORECASE),
    re.compile(r"(?P<year>\d{4})年(?P<month>\d{1,2})月(?P<day>\d{1,2})", re.IGNORECASE),
    re.compile(rf"(?P<month_name>{_MONTH_NAMES})\s+(?P<day>\d{{1,2}}),?\s+(?P<year>\d{{4}})", re.IGNORECASE),
    re.compile(rf"(?P<day>\d{{1,2}})\s+(?P<month_name>{_MONTH_NAMES}),?\s+(?P<year>\d{{4}})", re.IGNORECASE),
]

MONTH_MAP = {name.lower(): index for index, name in enumerate(_MONTH_NAMES.split("|"), start=1)}

# Checked in order, first keyword hit wins.
CATEGORY_KEYWORDS: list[tuple[str, list[str]]] = [
    (
        "Utilities",
        [
            "utility", "electric", "water", "gas", "power", "energy", "sanitation", "waste", "internet",
            "comcast", "xfinity", "verizon fios", "at&t u-verse", "pg&e", "con edison", "duke energy",
            "台電", "台灣電力", "自來水", "水費", "天然氣", "瓦斯", "中華電信", "網路費", "第四台", "電費",
            "能源賬單", "寬頻", "固網", "電力公司", "燃氣公司", "水務公司",
        ],
    ),
    (
        "Credit Card",
        [
            "visa", "mastercard", "master card", "amex", "american express", "discover", "credit card payment",
            "信用卡費", "信用卡帳單", "信用咭月結單", "卡費", "銀行月結單",
        ],
    ),
    (
        "Tax",
        [
            "tax", "irs", "internal revenue service", "revenue", "hmrc", "cra", "ato", "income tax",
            "property tax", "sales tax", "vat", "gst", "稅", "税单", "稅務", "所得稅", "營業稅", "地價稅",
            "房屋稅", "國稅局",
        ],
    ),
    (
        "Groceries",
        [
            "grocery", "market", "supermarket", "whole foods", "trader joe", "safeway", "kroger",
            "walmart neighborhood market", "target market", "aldi", "lidl", "publix", "wegmans",
            "stop & shop", "giant", "food lion", "heb", "meijer", "sprouts", "fresh market", "全聯",
            "px mart", "頂好", "wellcome", "citysuper", "jasons", "carrefour", "rt-mart", "costco", "愛買",
            "松青", "惠康", "超市", "菜市場", "食品杂货", "生鮮食品", "日常用品",
        ],
    ),
    (
        "Food",
        [
            "restaurant", "cafe", "food", "meal", "takeout", "delivery", "mcdonalds", "mcdonald's",
            "starbucks", "subway", "pizza hut", "dominos", "kfc", "burger king", "coffee", "lunch", "dinner",
            "breakfast", "brunch", "外賣", "餐廳", "咖啡廳", "膳食", "小吃", "速食", "便當", "飲料店", "手搖飲",
            "foodpanda", "ubereats", "grabfood",
        ],
    ),
    (
        "Transport",
        [
            "transport", "uber", "lyft", "taxi", "bus", "train", "subway", "mrt", "gasoline", "petrol", "fuel",
            "parking", "toll", "flight", "airline", "交通", "公車", "火車", "地鐵", "捷運", "油費", "停車費",
            "過路費", "計程車", "高鐵", "台鐵", "機票", "油站", "加油",
        ],
    ),
    ("Housing", ["rent", "mortgage", "housing", "strata", "hoa", "lease payment", "租金", "房貸", "住房費用", "管理費", "物業費"]),
    (
        "Health",
        [
            "health", "pharmacy", "doctor", "dentist", "hospital", "clinic", "cvs", "walgreens", "rite aid",
            "medical", "vision", "insurance premium", "健康", "藥房", "診所", "醫院", "保健品", "醫藥費", "牙醫",
            "看醫生", "健保費",
        ],
    ),
    (
        "Shopping",
        [
            "amazon", "target", "walmart", "best buy", "ebay", "clothing", "electronics", "books",
            "department store", "online shopping", "購物", "百貨公司", "網購", "服飾", "電器產品", "書店", "商場",
        ],
    ),
    (
        "Entertainment",
        [
            "movie", "cinema", "concert", "netflix", "spotify", "hulu", "disney+", "youtube premium", "games",
            "steam", "playstation", "xbox", "nintendo", "tickets", "event", "娛樂", "電影院", "音樂會", "遊戲",
            "串流服務", "門票", "ktv",
        ],
    ),
    (
        "Education",
        [
            "education", "school", "college", "university", "tuition", "books", "course", "udemy", "coursera",
            "student loan", "教育", "學費", "書本費", "課程費用", "補習班", "學貸",
        ],
    ),
    (
        "Travel",
        [
            "travel", "airline ticket", "hotel", "accommodation", "airbnb", "expedia", "booking.com", "vacation",
            "trip", "tourism", "旅遊", "機票", "住宿費用", "旅行社", "度假",
        ],
    ),
    ("Other", ["other", "miscellaneous", "fee", "service charge", "donation", "其他", "雜項", "手續費", "服務費", "捐款"]),
]

_CURRENCY = "(?:" + "|".join(re.escape(s) for s in CURRENCY_SYMBOLS) + ")"
CURRENCY_RE = re.compile(_CURRENCY)
AMOUNT_RE = re.compile(
    rf"(?:{_CURRENCY}\s*)?"
    r"(\d{1,3}(?:[,.]\d{3})*(?:[.,]\d{1,2})?|\d+(?:[.,]\d{1,2})?)"
    rf"(?:\s*{_CURRENCY})?"
)
_LEADING_NUMBER_RE = re.compile(r"\d+(?:\.\d+)?")


def _normalize_amount(token: str) -> str:
    """Rewrite a numeric token into period-decimal form without separators.

    ``1.234,56`` and ``1234,56`` become ``1234.56``; ``1,234.56`` becomes
    ``1234.56``.
    """
    has_comma_decimal = re.search(r",\d\d$", token) is not None and re.search(r"\.\d\d$", token) is None
    if re.search(r"\.\d{3},\d\d$", token) or (has_comma_decimal and "." in token):
        return token.replace(".", "").replace(",", ".", 1)
    if has_comma_decimal:
        return token.replace(",", ".", 1)
    return token.replace(",", "")


def _leading_float(value: str) -> float | None:
    # "1.234.567" reads as 1.234, like a lenient float parser would.
    match = _LEADING_NUMBER_RE.match(value)
    return float(match.group()) if match else None


def _line_score(line: str) -> int:
    lowered = line.lower()
    score = 0
    if any(keyword in lowered for keyword in ENGLISH_AMOUNT_KEYWORDS):
        score += 10
    if any(keyword in lowered for keyword in CHINESE_AMOUNT_KEYWORDS):
        score += 10
    if CURRENCY_RE.search(line):
        score += 2
    return score


def parse_amount(text: str) -> float | None:
    """Most plausible total in ``text``, or ``None``.

    Lines mentioning a total or a currency score higher; decimal values on
    such lines get a bonus; long integers on unscored, non-date lines are
    penalized. Equal scores prefer the larger value.
    """
    best_value: float | None = None
    best_score = 0

    for line in text.split("\n"):
        line_score = _line_score(line)
        has_currency = CURRENCY_RE.search(line) is not None

        for match in AMOUNT_RE.finditer(line):
            amount_str = _normalize_amount(match.group(1))
            value = _leading_float(amount_str)
            if value is None or value <= 0:
                continue

            score = line_score
            if (line_score > 0 or has_currency) and "." in amount_str:
                score += 5
            if line_score < 5 and (len(amount_str) > 7 or (len(amount_str) >= 4 and "." not in amount_str)):
                if not any(pattern.search(line) for pattern in DATE_PATTERNS):
                    score -= 5

            if best_value is not None and value < 1 and best_value > 10 and score < best_score - 5:
                continue

            if best_value is None or score > best_score or (score == best_score and value > best_value):
                best_value, best_score = value, score

    return best_value


def _expand_year(year: int, today: date) -> int:
    if year >= 100:
        return year
    return year + (1900 if year > today.year % 100 + 5 else 2000)


def parse_date(text: str, today: date | None = None) -> date | None:
    """First valid date found by the ordered patterns, or ``None``.

    Two-digit years pivot on ``today``: values more than five years ahead of
    the current two-digit year belong to the previous century.
    """
    today = today or date.today()
    for pattern in DATE_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue

        groups = match.groupdict()
        if groups.get("month_name"):
            month = MONTH_MAP[groups["month_name"].lower()[:3]]
        else:
            month = int(groups["month"])
        day = int(groups["day"])
        year = _expand_year(int(groups["year"]), today)

        if not 1 <= month <= 12 or not 1 <= day <= 31:
            continue
        try:
            return date(year, month, day)
        except ValueError:
            continue
    return None


def suggest_category(text: str) -> str | None:
    """Category of the first keyword found in ``text``."""
    lowered = text.lower()
    for name, keywords in CATEGORY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return name
    return None


def extract(text: str, today: date | None = None) -> OCRResult:
    """Run every heuristic over ``text``."""
    return OCRResult(
        text=text,
        amount=parse_amount(text),
        date=parse_date(text, today),
        suggested_category=suggest_category(text),
    )
