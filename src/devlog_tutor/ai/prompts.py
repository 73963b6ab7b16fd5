"""Prompt templates for every request sent to the AI service."""

from typing import assert_never

from devlog_tutor.models.roadmap import Message, MessageRole
from devlog_tutor.models.user_profile import UserProfile

ROADMAP_PROMPT = """\
Act as a Senior Software Architect and educational mentor. Answer in {language}.

GOAL:
Create a detailed technical learning roadmap for a user with this profile:
- Role: {role}
- Current level: {level}
- Main goal: {goal}

OUTPUT FORMAT (STRICT JSON):
Return JSON describing a graph of learning topics.

NODE RULES:
1. Generate between 5 and 8 key nodes needed to reach the goal.
2. Nodes must follow a logical sequence (dependencies).
3. "status": the first node must be "unlocked", every other node "locked".
4. "position": approximate {{x, y}} coordinates for a clean vertical or \
horizontal tree layout (~250 units apart).
5. All texts in {language}.

JSON STRUCTURE:
{{
  "nodes": [
    {{"id": "1", "label": "Concept", "status": "unlocked", \
"description": "Short description", "position": {{"x": 250, "y": 0}}}}
  ],
  "edges": [
    {{"id": "e1-2", "source": "1", "target": "2", "animated": true}}
  ]
}}

IMPORTANT: return only the raw JSON, without Markdown code blocks.
"""

MENTOR_PROMPT = """\
Act as a Senior Programming Mentor. Answer in {language}.

USER PROFILE:
Name: {name}
Role: {role}
Level: {level}
Goal: {goal}

INSTRUCTIONS:
Answer the user's questions to help them reach their goal. Be Socratic, \
encourage critical thinking and give clear code examples when needed.
"""

TOPIC_TUTOR_PROMPT = """\
Act as a Senior Programming Mentor who is an expert in pedagogy. Answer in {language}.

TOPIC TO TEACH: "{topic}".
STUDENT PROFILE: {level} {role}.

### METHOD (STRICT):
1. **NO LECTURES:** do not explain the whole topic at once. Aim for retention, not speed.
2. **INITIAL ASSESSMENT:** your first interaction (or whenever the user greets you) \
must ALWAYS ask what they already know about "{topic}" to calibrate your explanation.
3. **INCREMENTAL TEACHING:**
   - Split the topic into 3-4 key micro-concepts.
   - Explain ONLY ONE concept at a time.
   - Be brief. Avoid answers longer than 150 words when possible.
4. **SOCRATIC CHECKS:**
   - After each short explanation, ask a simple question or request an example.
   - Do not move on until the user has answered correctly.

### VISUAL FORMAT:
- Structured Markdown (H3 headings, lists).
- Code in fenced blocks with syntax highlighting.

Your goal is for the user to MASTER the topic step by step.
"""

TOPIC_WELCOME = """\
### Welcome to the module: **{topic}**

Before diving into theory, I need to calibrate how to explain this.

**How much do you know about this topic?**

1. I'm completely new to it.
2. I've heard about it but don't really understand it.
3. I've already used it and want to go deeper."""

EXAM_PROMPT = """\
Generate a short FINAL PRACTICAL EXAM to check that the user masters the topic: "{topic}".
Language: {language}.

USER PROFILE: {level} {role}.

REQUIREMENTS:
- Generate ONE single challenging exercise or conceptual question.
- For programming topics, ask for a code snippet.
- For conceptual topics, ask to explain "why" or "how it works".

JSON OUTPUT:
{{
  "question": "The exercise text...",
  "type": "code" | "concept"
}}

Return ONLY the JSON.
"""

GRADE_PROMPT = """\
Act as an Engineering Professor. Grade this answer.
Language: {language}.

TOPIC: {topic}
QUESTION: {question}
STUDENT ANSWER: {answer}

CRITERIA:
- If the answer shows solid understanding, pass it.
- If the answer is vague, wrong or hallucinated, fail it.

JSON OUTPUT:
{{
  "passed": true | false,
  "feedback": "Short text explaining why it passed or failed and how to improve."
}}

Return ONLY the JSON.
"""

MODULE_SUMMARY_PROMPT = """\
Act as an expert UI/UX web designer.

TASK:
Analyse the following educational chat about "{topic}" and build an HTML \
COMPONENT (card/section) summarising what was learned.

CHAT INPUT:
{transcript}

DESIGN REQUIREMENTS:
- Use Tailwind CSS.
- Style: dark modern glassmorphism. Dark background (slate-800/50), subtle \
borders, soft shadows.
- Content:
  1. An attractive title with a real inline SVG icon related to the topic.
  2. "What I learned": key bullet points taken from the chat.
  3. "Key snippet": a code block with the most important thing discussed.
- The component must be responsive (grid-col-1 on mobile).
- LANGUAGE: {language}.

OUTPUT:
Return ONLY the HTML of this component (no <html>, <head> or <body>, only the \
container <div>).
"""

PORTFOLIO_PROMPT = """\
Act as a Senior Frontend Developer.

GOAL:
Assemble a complete portfolio web page ("Learning Log") combining the HTML \
modules below.

PROFILE: {name} - {role} ({level}).
GOAL: {goal}.

HTML MODULES (already generated):
{modules_html}

DESIGN INSTRUCTIONS:
1. Create the full HTML5 structure (<!DOCTYPE html>, <html>, <head>, <body>).
2. HEAD:
   - Include the Tailwind CSS CDN: <script src="https://cdn.tailwindcss.com"></script>
   - Configure Tailwind with a modern font (Inter or JetBrains Mono).
   - Add custom styles for scrollbars and text selection.
3. BODY:
   - Background: bg-slate-950 text-slate-200.
   - HERO SECTION: a striking header with the user's name, goal and a visual \
progress bar ({completed} of {total} modules completed). Use gradients \
(emerald-500 to cyan-500).
   - GRID SECTION: a grid container (grid-cols-1 md:grid-cols-2 gap-6) where you \
insert the provided module blocks LITERALLY.
   - FOOTER: "Generated with DevLog AI".
4. INTERACTIVITY:
   - Add a simple script that fades elements in on scroll.
5. LANGUAGE: all interface text in {language}.

OUTPUT:
Return ONLY the complete HTML code.
"""

SESSION_DOCUMENT_PROMPT = """\
Act as a Senior Frontend Developer.

Build a complete standalone HTML5 page (Tailwind CSS CDN, dark theme) that \
summarises this learning conversation as a study log: key concepts, code \
snippets and conclusions.
{errors_instruction}
CONVERSATION:
{transcript}

LANGUAGE: {language}.

OUTPUT:
Return ONLY the complete HTML code.
"""

INCLUDE_ERRORS = """\
Also add a "Mistakes & lessons" section listing the errors the user made \
during the conversation and how they were corrected.
"""


def roadmap_prompt(profile: UserProfile, language: str) -> str:
    return ROADMAP_PROMPT.format(
        role=profile.role.value,
        level=profile.level.value,
        goal=profile.goal,
        language=language,
    )


def mentor_prompt(profile: UserProfile, language: str) -> str:
    return MENTOR_PROMPT.format(
        name=profile.name,
        role=profile.role.value,
        level=profile.level.value,
        goal=profile.goal,
        language=language,
    )


def topic_tutor_prompt(topic: str, profile: UserProfile, language: str) -> str:
    return TOPIC_TUTOR_PROMPT.format(
        topic=topic,
        role=profile.role.value,
        level=profile.level.value,
        language=language,
    )


def topic_welcome(topic: str) -> str:
    return TOPIC_WELCOME.format(topic=topic)


def exam_prompt(topic: str, profile: UserProfile, language: str) -> str:
    return EXAM_PROMPT.format(
        topic=topic,
        role=profile.role.value,
        level=profile.level.value,
        language=language,
    )


def grade_prompt(topic: str, question: str, answer: str, language: str) -> str:
    return GRADE_PROMPT.format(
        topic=topic, question=question, answer=answer, language=language
    )


def speaker_label(role: MessageRole) -> str:
    match role:
        case MessageRole.USER:
            return "USER"
        case MessageRole.MODEL:
            return "MODEL"
        case _:
            assert_never(role)


def format_transcript(messages: list[Message], char_limit: int | None = None) -> str:
    """Render a chat as ``ROLE: text`` lines, cut to ``char_limit`` characters."""
    text = "\n".join(f"{speaker_label(m.role)}: {m.text}" for m in messages)
    if char_limit is not None:
        text = text[:char_limit]
    return text


def module_summary_prompt(topic: str, transcript: str, language: str) -> str:
    return MODULE_SUMMARY_PROMPT.format(
        topic=topic, transcript=transcript, language=language
    )


def portfolio_prompt(
    profile: UserProfile,
    modules_html: str,
    completed: int,
    total: int,
    language: str,
) -> str:
    return PORTFOLIO_PROMPT.format(
        name=profile.name,
        role=profile.role.value,
        level=profile.level.value,
        goal=profile.goal,
        modules_html=modules_html,
        completed=completed,
        total=total,
        language=language,
    )


def session_document_prompt(transcript: str, include_errors: bool, language: str) -> str:
    return SESSION_DOCUMENT_PROMPT.format(
        transcript=transcript,
        errors_instruction=INCLUDE_ERRORS if include_errors else "",
        language=language,
    )
