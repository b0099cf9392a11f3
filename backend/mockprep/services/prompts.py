"""Prompt templates for interview grading."""

GRADING_SYSTEM_PROMPT = (
    "You are an experienced technical interviewer grading a candidate's answer. "
    "Always respond with a single JSON object."
)

GRADING_PROMPT_TEMPLATE = """Grade the candidate's answer to this {difficulty} interview question.

Question:
{question}

Candidate answer:
{answer}

Respond with JSON of this shape:
{{
  "relevant": true or false,
  "score": number from 0 to 10,
  "feedback": {{
    "strengths": "what the answer gets right",
    "mistakes": "mistakes or gaps",
    "improvements": "how to improve the answer"
  }},
  "reference_answer": "a concise ideal answer to the question"
}}

If the answer is not relevant to the question, set "relevant" to false and "score" to 0.
"""

REFERENCE_PROMPT_TEMPLATE = """Write a concise ideal answer to this {difficulty} interview question,
as a strong candidate would give it.

Question:
{question}

Respond with JSON of this shape:
{{"reference_answer": "the ideal answer"}}
"""

FEEDBACK_SECTION_TITLES = {
    "strengths": "Strengths",
    "mistakes": "Mistakes / Gaps",
    "improvements": "Improvements",
}


def build_grading_prompt(question: str, answer: str, difficulty: str) -> str:
    return GRADING_PROMPT_TEMPLATE.format(
        question=question, answer=answer, difficulty=difficulty
    )


def build_reference_prompt(question: str, difficulty: str) -> str:
    return REFERENCE_PROMPT_TEMPLATE.format(question=question, difficulty=difficulty)
