from __future__ import annotations

FIT_ANALYSIS_PROMPT = """
You are an expert ATS (Applicant Tracking System) analyzer.
Extract keywords and skills from the job description, compare them with the
resume, calculate a match score and give specific, actionable feedback.
Return strict JSON with keys:
- match_score: number (0..100)
- missing_keywords: string[]
- keyword_density: array of objects with keys term (string) and count (number)
- formatting_issues: string[]
- skills_gap: string[]
- recommendations: array of objects with keys:
  - priority: one of [high, medium, low]
  - suggestion: string
  - location: string (resume section the change applies to)

Resume text:
{resume_text}

Job description:
{job_description}
""".strip()

RESUME_VARIANTS_PROMPT = """
You are an expert resume writer.
Create {count} DIFFERENT versions of the optimized resume in Markdown:
{variant_lines}
Every content field must contain the FULL resume text.
Return strict JSON with keys:
- versions: array of objects with keys id (string), name (string), content (string)

Fit analysis JSON:
{analysis_json}

Original resume:
{resume_text}

Job description:
{job_description}
""".strip()

COVER_LETTER_VARIANTS_PROMPT = """
You are a career coach.
Write {count} distinct cover letters:
{variant_lines}
Return strict JSON with keys:
- versions: array of objects with keys id (string), name (string), content (string)

Resume:
{resume_text}

Job description:
{job_description}
""".strip()

INTERVIEW_QUESTIONS_PROMPT = """
You are an expert interviewer.
Generate {count} interview questions tailored to this role and candidate:
- {behavioral} behavioral questions (STAR method format)
- {technical} technical/role-specific questions
- {situational} situational questions
Return strict JSON with keys:
- questions: array of objects with keys:
  - type: one of [behavioral, technical, situational]
  - question: string
  - why_asked: string

Job description:
{job_description}

Resume:
{resume_text}
""".strip()

ANSWER_GRADING_PROMPT = """
You are an expert interview coach.
Evaluate the candidate's {medium} answer and give constructive feedback.
{medium_note}
Return strict JSON with keys:
- score: number (0..10)
- strengths: string[]
- improvements: string[]
- model_answer: string (an improved version of the answer)
- specific_feedback: string

Job description (excerpt):
{job_excerpt}

Question asked ({question_type}):
{question}

Candidate answer:
{answer}
""".strip()

CANDIDATE_QUESTION_PROMPT = """
You are an interview coach reviewing a question the candidate plans to ask
the interviewer at the end of the interview. Judge whether it shows insight
into the role and company and whether it is appropriate to ask.
Return strict JSON with keys:
- score: number (0..10)
- assessment: string
- improved_question: string

Job description (excerpt):
{job_excerpt}

Candidate question:
{question}
""".strip()

MOCK_INTERVIEW_OPENING_PROMPT = """
You are the hiring manager running a live mock interview for the role below.
Greet the candidate briefly and ask your first question. Reply with the
words you would say, nothing else.

Job description (excerpt):
{job_excerpt}

Candidate resume (excerpt):
{resume_excerpt}
""".strip()

MOCK_INTERVIEW_TURN_PROMPT = """
You are the hiring manager running a live mock interview for the role below.
Continue the conversation: react briefly to the candidate's last reply and
ask the next question. Reply with the words you would say, nothing else.

Job description (excerpt):
{job_excerpt}

Transcript so far:
{transcript}
""".strip()

MOCK_INTERVIEW_FEEDBACK_PROMPT = """
You are an interview coach. Review the mock interview transcript below and
write concise feedback for the candidate: overall impression, strongest
moments, what to improve, and one concrete next step. Plain text only.

Job description (excerpt):
{job_excerpt}

Transcript:
{transcript}
""".strip()

RESUME_VARIANTS = (
    ("Standard Optimized", "Clean, professional, minimal changes but a high ATS score."),
    ("Action-Oriented", "Focus heavily on verbs and results/metrics. Assertive tone."),
    ("Skills-Focused", "Emphasize technical skills and competencies at the top."),
)

COVER_LETTER_VARIANTS = (
    ("Professional", "Traditional, polite, respectful."),
    ("Creative", "Engaging, storytelling approach, shows personality."),
    ("Concise", "Short, punchy, straight to the value proposition (under 200 words)."),
)


def variant_lines(variants: tuple[tuple[str, str], ...], count: int) -> str:
    picked = [variants[idx % len(variants)] for idx in range(count)]
    return "\n".join(f'{idx}. "{name}": {hint}' for idx, (name, hint) in enumerate(picked, start=1))


def question_mix(count: int) -> dict[str, int]:
    """Split ``count`` questions 2:2:1 across behavioral/technical/situational."""
    situational = max(1, count // 5) if count > 0 else 0
    remaining = count - situational
    behavioral = (remaining + 1) // 2
    return {
        "behavioral": behavioral,
        "technical": remaining - behavioral,
        "situational": situational,
    }
