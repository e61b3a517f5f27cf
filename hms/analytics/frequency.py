"""
Condition and medicine frequency tables with top-N + "Other" merging.
"""
import re
from typing import Dict, Iterable, List, Optional

PIE_CHART_TOP_N = 6
SUMMARY_TOP_N = 8
OTHER_LABEL = 'Other'

CONDITION_VOCABULARY = (
    'fever', 'cough', 'headache', 'pain', 'cold', 'flu', 'diabetes', 'hypertension',
    'asthma', 'depression', 'anxiety', 'back pain', 'chest pain', 'stomach pain',
    'skin problem', 'allergy', 'infection', 'blood pressure', 'heart', 'lung',
    'kidney', 'liver', 'eye', 'ear', 'nose', 'throat', 'dental', 'mental health',
)

_SKIP_WORDS = ('prescription', 'advice', 'diet', 'follow', 'next', 'visit')
_LETTER = re.compile(r'[a-zA-Z]')
_DAYS = re.compile(r'\d+\s*days?', re.IGNORECASE)
_KEYCAP_LINE = re.compile(r'\*[1-9]\ufe0f\u20e3\s+(.+?)\*')
_NUMBERED_LINE = re.compile(r'^\d+[.)]\s*(.+?)(?:\s*[-–—]|$)')
_CAPITALISED_LINE = re.compile(r'^[A-Z][a-z]+')

_STRIP_PATTERNS = (
    re.compile(r'\d+(?:\.\d+)?\s*(?:mg|g|ml|mcg|microgram|gram|milligram|capsule|tablet|tab|cap|drops?|syrup|injection|amp|vial)', re.IGNORECASE),
    re.compile(r'\b(?:daily|once|twice|thrice|three times|four times|\d+\s*times|after|before|with|meals?|food|empty stomach|morning|evening|night|bedtime)\b', re.IGNORECASE),
    re.compile(r'\b(?:for|duration|continue|take)\s+\d+\s*(?:days?|weeks?|months?|hours?)\b', re.IGNORECASE),
    re.compile(r'\b(?:after|before|with|meals?|food|empty stomach|morning|evening|night|bedtime|times|per day|as directed|as needed)\b', re.IGNORECASE),
    re.compile(r'\[.*?\]'),
    re.compile(r'\(.*?\)'),
)
_DASH = re.compile(r'\s*[-–—]\s*')
_COLON = re.compile(r'\s*:\s*')
_SPACES = re.compile(r'\s+')
_INSTRUCTION_WORDS = {'take', 'give', 'use', 'apply', 'drink', 'eat', 'with', 'after', 'before'}


def merge_top_n(entries: List[Dict], top_n: int, label_key: str, count_key: str) -> List[Dict]:
    """
    Keep the first top_n entries (already sorted) and fold the rest into
    one "Other" entry whose count is their sum and whose 'merged' lists
    their labels. No "Other" entry when nothing was cut.
    """
    head = [dict(entry) for entry in entries[:top_n]]
    rest = entries[top_n:]
    if rest:
        head.append({
            label_key: OTHER_LABEL,
            count_key: sum(entry[count_key] for entry in rest),
            'merged': [entry[label_key] for entry in rest],
        })
    return head


def compute_condition_frequency(records: Iterable, top_n: int = SUMMARY_TOP_N) -> List[Dict]:
    """
    Count vocabulary conditions in chief complaints.

    Matching is case-insensitive substring containment and not exclusive:
    "chest pain" counts for both 'pain' and 'chest pain'.
    """
    counts: Dict[str, int] = {}
    for record in records:
        complaint = (record.chief_complaint or '').lower()
        if not complaint:
            continue
        for condition in CONDITION_VOCABULARY:
            if condition in complaint:
                counts[condition] = counts.get(condition, 0) + 1

    order = {condition: index for index, condition in enumerate(CONDITION_VOCABULARY)}
    entries = sorted(
        ({'condition': condition, 'count': count} for condition, count in counts.items()),
        key=lambda entry: (-entry['count'], order[entry['condition']]),
    )
    return merge_top_n(entries, top_n, 'condition', 'count')


def _skip_line(line: str) -> bool:
    lower = line.lower().strip()
    if any(word in lower for word in _SKIP_WORDS):
        return True
    if 'days' in lower and not _LETTER.search(_DAYS.sub('', lower)):
        return True
    if lower.startswith('•') and ('times' in lower or 'daily' in lower):
        return True
    return False


def _candidate_name(line: str) -> Optional[str]:
    match = _KEYCAP_LINE.search(line)
    if match:
        return match.group(1)
    match = _NUMBERED_LINE.match(line)
    if match:
        return match.group(1)
    if _CAPITALISED_LINE.match(line.strip()):
        return line.strip()
    return None


def _clean_name(raw: str) -> Optional[str]:
    name = raw
    for pattern in _STRIP_PATTERNS:
        name = pattern.sub('', name)
    name = _DASH.sub(' ', name)
    name = _COLON.sub(' ', name)
    name = _SPACES.sub(' ', name).strip()

    words = [
        word for word in name.split()
        if word.lower() not in _INSTRUCTION_WORDS and len(word) > 1 and _LETTER.search(word)
    ]
    if not words:
        return None
    name = ' '.join(words[:3]).strip()
    if 2 < len(name) < 50:
        return name
    return None


def extract_medicines(medicine_text: Optional[str]) -> List[str]:
    """
    Pull medicine names out of free-text prescriptions.

    Recognizes keycap-emoji lines ("*1️⃣ Paracetamol 500mg*"),
    numbered lines ("1. Amoxicillin 250mg - twice daily") and lines that
    start with a capitalised word. Doses, timings and durations are
    stripped; at most three words are kept.
    """
    if not medicine_text or not medicine_text.strip():
        return []

    medicines = []
    for line in medicine_text.splitlines():
        if not line.strip() or _skip_line(line):
            continue
        raw = _candidate_name(line)
        if not raw:
            continue
        name = _clean_name(raw)
        if name:
            medicines.append(name)
    return medicines


def _title(name: str) -> str:
    return ' '.join(word[:1].upper() + word[1:].lower() for word in name.split(' '))


def compute_medicine_frequency(records: Iterable, top_n: int = SUMMARY_TOP_N) -> List[Dict]:
    """
    Prescription counts from completed appointments' medicine text.

    Returns:
        list of {'medicine_name', 'prescription_count', 'percentage'}; an
        "Other" entry (with 'merged') folds in everything past top_n.
    """
    counts: Dict[str, int] = {}
    for record in records:
        if record.status != 'completed' or not record.medicine:
            continue
        for medicine in extract_medicines(record.medicine):
            name = _title(medicine)
            counts[name] = counts.get(name, 0) + 1

    total = sum(counts.values())
    entries = sorted(
        ({'medicine_name': name, 'prescription_count': count} for name, count in counts.items()),
        key=lambda entry: -entry['prescription_count'],
    )
    merged = merge_top_n(entries, top_n, 'medicine_name', 'prescription_count')
    for entry in merged:
        entry['percentage'] = round(entry['prescription_count'] / total * 100, 2) if total else 0.0
    return merged
