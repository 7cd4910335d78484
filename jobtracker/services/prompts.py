"""
Prompt templates for every AI feature.

Each builder returns a Prompt(system, user). All but the cover letter ask
for a JSON object back; routes decode it with llm.parse_json().
"""

from dataclasses import dataclass


@dataclass
class Prompt:
    system: str
    user: str


RESUME_ANALYSIS_SYSTEM = """You are an expert career coach and resume reviewer. Analyze the resume and return a structured JSON response with these fields:

{
  "summary": "Brief professional summary extracted or inferred",
  "skills": ["skill1", "skill2"],
  "experience": [
    {
      "title": "Job Title",
      "company": "Company Name",
      "duration": "Date Range",
      "highlights": ["achievement 1", "achievement 2"]
    }
  ],
  "education": [
    {
      "degree": "Degree",
      "institution": "School",
      "year": "Year"
    }
  ],
  "strengths": ["strength 1", "strength 2"],
  "weaknesses": ["area for improvement 1"],
  "overallScore": 75
}

Return ONLY valid JSON, no markdown formatting or extra text."""


TAILORING_SYSTEM = """You are an expert resume writer and ATS optimization specialist. Tailor a resume to match a specific job posting while keeping content truthful.

Rules:
- Do NOT fabricate experience or skills the candidate does not have
- DO reorder, rephrase, and emphasize existing experience to match job requirements
- DO mirror keywords and phrases from the job description where they honestly apply
- DO quantify achievements where possible
- DO adjust the professional summary to target this specific role

Return a JSON response:
{
  "tailoredResume": "The full tailored resume text",
  "matchScore": 82,
  "changes": ["Reworded summary to emphasize X", "Added keyword Y"],
  "missingSkills": ["skill they should learn"],
  "suggestions": ["Consider getting X certification"]
}

Return ONLY valid JSON."""


OUTREACH_SYSTEM = """You are an expert at writing personalized recruiter outreach emails. Write a concise, compelling email that:

- Is 150-250 words maximum
- Has a compelling subject line
- References the specific role and company
- Highlights 2-3 relevant qualifications
- Includes a clear call to action
- Matches the requested tone: {tone}
- Feels personal, not templated

Return a JSON response:
{{
  "subject": "Email subject line",
  "body": "Full email body in HTML format with <p> tags",
  "plainText": "Plain text version"
}}

Return ONLY valid JSON."""


JOB_PARSING_SYSTEM = """You are a job posting parser. Extract structured information from raw job posting text. Return a JSON response:

{
  "title": "Job Title",
  "company": "Company Name",
  "location": "Location or Remote",
  "jobType": "full-time | part-time | contract | remote",
  "salary": "Salary range if mentioned, or null",
  "description": "Clean, formatted job description",
  "requirements": ["requirement 1", "requirement 2"],
  "niceToHave": ["optional skill 1"],
  "benefits": ["benefit 1"]
}

Return ONLY valid JSON. If a field is not found, use null."""


COVER_LETTER_SYSTEM = """You are an expert cover letter writer. Write a cover letter for the candidate below, aimed at the target job.

Guidelines:
- 250-400 words, three to five paragraphs
- Open with a specific hook about the role or company, not "I am writing to apply"
- Connect 2-3 concrete achievements from the candidate background to the job requirements
- Do NOT invent experience, employers, or credentials
- Close with a confident call to action
- Tone: {tone}

Return only the letter text, without a subject line or markdown."""


def resume_analysis_prompt(resume_text: str) -> Prompt:
    return Prompt(
        system=RESUME_ANALYSIS_SYSTEM,
        user=f"Please analyze this resume:\n\n{resume_text}",
    )


def resume_tailoring_prompt(resume_text: str, job_description: str, job_title: str, company: str) -> Prompt:
    return Prompt(
        system=TAILORING_SYSTEM,
        user=(
            f"ORIGINAL RESUME:\n{resume_text}\n\n"
            f"TARGET JOB:\nTitle: {job_title}\nCompany: {company}\n\n"
            f"JOB DESCRIPTION:\n{job_description}\n\n"
            "Please tailor this resume for the job above."
        ),
    )


def outreach_email_prompt(resume_summary: str, job_title: str, company: str,
                          recipient_name: str | None, tone: str) -> Prompt:
    return Prompt(
        system=OUTREACH_SYSTEM.format(tone=tone),
        user=(
            f"CANDIDATE BACKGROUND:\n{resume_summary}\n\n"
            f"TARGET:\nRole: {job_title}\nCompany: {company}\n"
            f"Recipient: {recipient_name or 'Hiring Manager'}\n\n"
            f"Please write a {tone} outreach email."
        ),
    )


def job_parsing_prompt(raw_text: str) -> Prompt:
    return Prompt(system=JOB_PARSING_SYSTEM, user=f"Parse this job posting:\n\n{raw_text}")


def cover_letter_prompt(resume_text: str, job_description: str, job_title: str,
                        company: str, tone: str) -> Prompt:
    return Prompt(
        system=COVER_LETTER_SYSTEM.format(tone=tone),
        user=(
            f"CANDIDATE BACKGROUND:\n{resume_text[:6000]}\n\n"
            f"TARGET JOB:\nTitle: {job_title}\nCompany: {company}\n\n"
            f"JOB DESCRIPTION:\n{job_description}"
        ),
    )
