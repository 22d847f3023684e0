"""Prompt templates for chat, profile and recommendation calls."""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

NO_PROFILE = "No profile information available."


def _load_persona() -> str:
    """Load the PERSONA.md file for the chat system prompt."""
    persona_path = Path(__file__).parent.parent / "PERSONA.md"
    try:
        return persona_path.read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        logger.warning("PERSONA.md not found at %s, using fallback persona", persona_path)
        return (
            "You are CollegeWayfarer, an AI assistant designed to help high school students "
            "with college planning and application processes. Be supportive, accurate, and "
            "never make up information about colleges."
        )


# Load once at module import
_PERSONA_PROMPT = _load_persona()


def _names_or_none(names: list[str]) -> str:
    return ", ".join(names) if names else "None"


def chat_system_prompt(profile_description: str | None, session_title: str) -> str:
    return f"""{_PERSONA_PROMPT}

STUDENT PROFILE:
\"\"\"
{profile_description or NO_PROFILE}
\"\"\"

Current conversation: {session_title}

Respond to the user's questions and messages as CollegeWayfarer following the guidelines above."""


def profile_generation_prompt(onboarding: dict[str, str]) -> str:
    return f"""You are CollegeWayfarer, an AI assistant specializing in helping high school students with college applications.

The user just provided the following information during their onboarding process:
Student's academic interests: {onboarding.get("programs")}
Academic environment preferences: {onboarding.get("academicEnv")}
Location preferences: {onboarding.get("location")}
Campus culture preferences: {onboarding.get("culture")}
Academic achievements: {onboarding.get("academicStats")}
Financial aid needs: {onboarding.get("financialAid")}
Other considerations: {onboarding.get("other")}

INSTRUCTIONS:
Write a concise, professionally written initial student profile/summary based on the information the student provided.
The profile should be written in the third person and should highlight the student's academic strengths,
interests, and aspirations in a way that would be helpful for college planning. It could include:
- Key interests and extracurricular activities
- Career aspirations
- College preferences (location, size, etc.)
- The student's academic calibre and stats
- Financial needs and scholarship interests
- Any other considerations

Write ONLY the profile text with no additional commentary. Start the description with "This student is\""""


def profile_update_prompt(current_profile: str, user_message: str, history: list[tuple[str, str]]) -> str:
    transcript = "\n".join(f"{sender}: {content}" for sender, content in history)
    return f"""Your objective is to update the user's profile description based on information that the user provides.
The current profile description is:
\"\"\"
{current_profile}
\"\"\"

The user just sent a new message in the chat:
\"\"\"
{user_message}
\"\"\"

Chat history for context:
{transcript or "(no earlier messages)"}

Based on the user's new message, determine if there is any NEW information about the user as a college applicant that should be added to or removed from their profile.
Pay special attention to:
- Academic interests, majors, programs they're considering or no longer considering
- Locations or colleges they're interested in or no longer interested in
- Activities, extracurriculars, or achievements
- Test scores, GPA, or academic performance
- Personal preferences about college environment, culture, etc.

IF there is new information to add or remove:
Return an UPDATED version of the entire profile description that incorporates these changes naturally. JUST PRINT THE UPDATED PROFILE TEXT. DO NOT add any extra formatting text or notes that you have updated it.

If there is NO new information:
Just return NULL (the literal word) - nothing else

DO NOT invent information or make assumptions. Only include information explicitly stated by the user.
Remember, return ONLY the updated text of the profile or NULL. NOTHING EXTRA."""


def recommendation_prompt(
    profile_description: str | None,
    preference: str | None,
    applying: list[str],
    researching: list[str],
    not_applying: list[str],
    current_recommendations: list[str],
) -> str:
    return f"""You are a college counselor tasked with generating personalized college recommendations.

STUDENT PROFILE:
\"\"\"
{profile_description or NO_PROFILE}
\"\"\"

STUDENT'S SPECIFIC REQUEST:
\"\"\"
{preference or "The student didn't specify any particular preference."}
\"\"\"

CURRENT COLLEGE LISTS:
- Currently applying to: {_names_or_none(applying)}
- Currently researching: {_names_or_none(researching)}
- Decided not to apply to: {_names_or_none(not_applying)}
- Current recommendations: {_names_or_none(current_recommendations)}

INSTRUCTIONS:
1. Generate exactly 3 college recommendations that would be a good fit for this student.
2. For each college, provide:
   - The name of the college
   - A brief description (2-3 sentences) of what the college is known for
   - 2-3 specific reasons why this might be a good match for the student, referring to details from their profile
   - An estimated acceptance rate (as a percentage between 0-100)

3. Format your response as a JSON array with the following structure:
[
  {{
    "name": "College Name",
    "description": "Brief description of what the college is known for",
    "reason": "Why this college might be a good fit for the student",
    "acceptanceRate": 45
  }}
]

4. Make thoughtful recommendations that:
   - Are not already in the student's current college lists
   - Are not already in the student's current recommendations list
   - Match the student's academic profile and interests
   - Consider the student's preference if they specified one
   - Unless the student specifically requests otherwise, should prioritize schools that the student might like that are not highly selective. In general, be skeptical to recommend highly selective schools.

Return ONLY the JSON array, with no other text or commentary."""


def college_info_prompt(college_name: str) -> str:
    return f"""Please provide the following information about {college_name}, a college/university:
1. A brief description of the college (2-3 sentences)
2. Why this might be a good fit for a student (2-3 sentences)
3. The acceptance rate as a number between 0 and 100 (just the number, no symbols or text)

Format your response as a JSON object with these fields:
{{
  "description": "Brief description of the college",
  "reason": "Why it might be a good fit",
  "acceptanceRate": number
}}

Return ONLY the JSON object."""
