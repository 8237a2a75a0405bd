"""
Prompt templates for the LLM query-understanding step.
The model must answer with a single JSON object matching SearchIntent's wire shape.
"""

from typing import Optional

from medifly.services.intent_rules import COUNTRIES

SPECIALTY_VOCABULARY = (
    "Cardiology (heart)",
    "Oncology (cancer)",
    "Neurology (brain, nervous system)",
    "Orthopedics (bones, joints)",
    "Pediatrics (children)",
    "Obstetrics & Gynecology (women's health, pregnancy)",
    "Dermatology (skin)",
    "Ophthalmology (eyes)",
    "ENT (ear, nose, throat)",
    "Gastroenterology (digestive system)",
    "Urology (urinary system)",
    "Psychiatry (mental health)",
    "Endocrinology (hormones, diabetes)",
    "Nephrology (kidneys)",
    "Pulmonology (lungs)",
)

SYSTEM = (
    "You are a medical travel assistant helping patients find hospitals and doctors. "
    "Classify each request as a hospital search or a doctor search, extract structured filters, "
    "and suggest follow-up searches. Respond ONLY with valid JSON, no other text or markdown."
)

USER_TPL = """User query: "{message}"
{context}
Analyze the user's query and respond with a JSON object containing:

1. "responseText": A natural, helpful response (2-3 sentences). Be warm and professional.
2. "searchType": Either "hospital" or "doctor" based on what the user is looking for.
3. "searchQuery": An optimized search query for vector similarity search. Keep key medical terms, specialties and locations.
4. "filters": Object with optional filters (omit any that do not apply, never use null):
   - "specialty": lowercase specialty name from the list below
   - "country": one of the supported countries
   - "city": city name
   - "minExperience": minimum years of experience (doctors only)
   - "isHalal": true for halal-certified facilities
   - "minRating": minimum rating between 1 and 5
5. "actions": Array of exactly 3 follow-up action items. Each has:
   - "text": button text (e.g. "Show experienced cardiologists", "Find hospitals in Singapore")
   - "type": "hospital" or "doctor"
   - "query": search query for this action
   - "filters": filters object for this action

Medical specialties to recognize:
{specialties}

Countries in our database:
{countries}
"""


def build_user_prompt(
    message: str,
    previous_query: Optional[str] = None,
    previous_count: Optional[int] = None,
) -> str:
    """Render the user message with the optional previous-search context line."""
    context = ""
    if previous_count is not None:
        context = f'\nPrevious search returned {previous_count} results for "{previous_query or ""}".\n'
    return USER_TPL.format(
        message=message.strip(),
        context=context,
        specialties="\n".join(f"- {s}" for s in SPECIALTY_VOCABULARY),
        countries="\n".join(f"- {c}" for c in COUNTRIES),
    )
