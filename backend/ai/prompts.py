# backend/ai/prompts.py
# NOTE: templates use double braces to escape literal JSON in str.format()

SYSTEM_PROMPT = "You are an expert technical interviewer and career coach. Reply with strict JSON and nothing else."

RESUME_PARSE_TPL = """Extract structured data from the resume below. Be thorough and accurate.

Return ONLY a JSON object of this shape:
{{
  "personalInfo": {{"name": "", "email": "", "phone": "", "address": "", "linkedin": "", "github": "", "website": ""}},
  "workExperience": [
    {{"title": "", "company": "", "duration": "", "location": "", "description": "",
      "skills": [""], "startDate": "YYYY-MM", "endDate": "YYYY-MM or Present"}}
  ],
  "education": [
    {{"degree": "", "institution": "", "graduationYear": "YYYY", "gpa": "", "relevantCoursework": [""]}}
  ],
  "skills": [""],
  "summary": ""
}}

Resume:
---
{resume}
"""

QUESTIONS_TPL = """Based on the candidate's work experience below, write exactly {n} tailored interview questions.

Cover, in order:
1. specific experience from their background
2. technical problem solving and challenges they faced
3. collaboration and leadership
4. a situational scenario from their industry
5. future goals and growth

Each question has a "questionType": one of "experience", "technical", "behavioral", "situational".

Return ONLY this JSON. No markdown, no commentary.
{{
  "questions": [
    {{"questionText": "...", "questionType": "experience", "isRequired": true}}
  ]
}}

Work experience:
---
{experience}
"""

EVALUATION_TPL = """Evaluate this interview answer. Score each criterion from 0 to 10.

Question: {question}
Answer: {response}
Expected skills: {skills}
Candidate background:
{background}

Return ONLY this JSON:
{{
  "relevance": 0-10,
  "clarity": 0-10,
  "completeness": 0-10,
  "technicalAccuracy": 0-10,
  "overallScore": 0-10,
  "strengths": ["..."],
  "improvements": ["..."],
  "detailedFeedback": "what was good and how to improve"
}}
"""

OVERALL_TPL = """Summarise this candidate's whole interview.

Candidate profile:
{profile}

Questions, answers and per-answer evaluations:
{performance}

Return ONLY this JSON:
{{
  "overallScore": 0-10,
  "feedback": "overall feedback for career development",
  "strengths": ["...", "...", "..."],
  "improvements": ["...", "...", "..."]
}}
"""
