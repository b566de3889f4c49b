"""Built-in field schemas for clinical evaluation report sections."""

from __future__ import annotations

from typing import Any

HEADER: dict[str, Any] = {
    "key": "header",
    "title": "Student Information",
    "fields": [
        {"key": "first_name", "label": "First Name", "type": "string", "required": True},
        {"key": "last_name", "label": "Last Name", "type": "string", "required": True},
        {"key": "date_of_birth", "label": "Date of Birth", "type": "date", "required": True},
        {"key": "age", "label": "Age", "type": "string"},
        {"key": "student_id", "label": "Student ID", "type": "string", "required": True},
        {
            "key": "grade",
            "label": "Grade",
            "type": "select",
            "options": ["Pre-K", "TK", "K", "1st", "2nd", "3rd", "4th", "5th", "6th",
                        "7th", "8th", "9th", "10th", "11th", "12th"],
        },
        {"key": "primary_languages", "label": "Primary Language(s)", "type": "string"},
        {"key": "report_date", "label": "Report Date", "type": "date"},
        {"key": "evaluation_dates", "label": "Evaluation Date(s)", "type": "string"},
        {"key": "evaluator_name", "label": "Evaluator Name", "type": "string"},
        {"key": "evaluator_credentials", "label": "Evaluator Credentials", "type": "string"},
        {"key": "school_name", "label": "School Name", "type": "string"},
    ],
}

VALIDITY_STATEMENT: dict[str, Any] = {
    "key": "validity_statement",
    "title": "Validity Statement",
    "fields": [
        {"key": "is_valid", "label": "Results are", "type": "boolean", "required": True},
        {
            "key": "student_cooperation",
            "label": "Student Cooperation",
            "type": "object",
            "children": [
                {"key": "cooperative", "label": "Cooperative", "type": "boolean"},
                {"key": "understanding", "label": "Understanding notes", "type": "string"},
                {"key": "custom_notes", "label": "Custom notes", "type": "string"},
            ],
        },
        {
            "key": "validity_factors",
            "label": "Validity Factors",
            "type": "object",
            "children": [
                {"key": "attention_issues", "label": "Attention issues", "type": "boolean"},
                {"key": "motivation_problems", "label": "Motivation problems", "type": "boolean"},
                {"key": "cultural_considerations", "label": "Cultural considerations", "type": "boolean"},
                {"key": "other", "label": "Other factors", "type": "string"},
            ],
        },
    ],
}

ASSESSMENT_RESULTS: dict[str, Any] = {
    "key": "assessment_results",
    "title": "Assessment Results",
    "fields": [
        {
            "key": "standardized_tests",
            "label": "Standardized Tests",
            "type": "array",
            "children": [
                {"key": "name", "label": "Test name", "type": "string"},
                {"key": "standard_score", "label": "Standard score", "type": "number"},
                {"key": "percentile", "label": "Percentile", "type": "number"},
                {"key": "interpretation", "label": "Interpretation", "type": "string"},
            ],
        },
        {
            "key": "articulation",
            "label": "Articulation/Phonology",
            "type": "object",
            "children": [
                {"key": "error_patterns", "label": "Error patterns", "type": "string"},
                {"key": "stimulability", "label": "Stimulability", "type": "string"},
                {"key": "intelligibility", "label": "Intelligibility", "type": "string"},
            ],
        },
        {
            "key": "language",
            "label": "Language Skills",
            "type": "object",
            "children": [
                {"key": "receptive", "label": "Receptive language", "type": "string"},
                {"key": "expressive", "label": "Expressive language", "type": "string"},
                {"key": "pragmatics", "label": "Pragmatics", "type": "string"},
            ],
        },
    ],
}

LANGUAGE_SAMPLE: dict[str, Any] = {
    "key": "language_sample",
    "title": "Language Sample Analysis",
    "fields": [
        {"key": "story_retell", "label": "Story Retell Sample", "type": "string"},
        {"key": "play_sample", "label": "Play Sample", "type": "string"},
        {"key": "sample_obtained", "label": "50-utterance sample obtained", "type": "boolean"},
        {"key": "sample_explanation", "label": "If no, explanation", "type": "string"},
    ],
}

PARENT_CONCERN: dict[str, Any] = {
    "key": "parent_concern",
    "title": "Parent/Guardian Concerns",
    "fields": [
        {"key": "parent_name", "label": "Parent/Guardian Name", "type": "string"},
        {"key": "communication_concerns", "label": "Communication Concerns", "type": "string"},
        {"key": "social_concerns", "label": "Social Interaction Concerns", "type": "string"},
        {"key": "academic_concerns", "label": "Academic Concerns", "type": "string"},
        {"key": "onset_duration", "label": "Onset/Duration", "type": "string"},
    ],
}

ASSESSMENT_TOOLS: dict[str, Any] = {
    "key": "assessment_tools",
    "title": "Assessment Tools",
    "fields": [
        {"key": "standardized_tests", "label": "Standardized Assessments", "type": "array"},
        {"key": "informal_assessments", "label": "Informal Assessments", "type": "array"},
        {"key": "observation_contexts", "label": "Observation Contexts", "type": "array"},
    ],
}

ELIGIBILITY_CHECKLIST: dict[str, Any] = {
    "key": "eligibility_checklist",
    "title": "Eligibility Determination",
    "fields": [
        {"key": "speech_criteria", "label": "Meets criteria for speech impairment", "type": "boolean"},
        {"key": "speech_justification", "label": "Speech impairment justification", "type": "string"},
        {"key": "language_criteria", "label": "Meets criteria for language impairment", "type": "boolean"},
        {"key": "language_justification", "label": "Language impairment justification", "type": "string"},
        {"key": "educational_impact", "label": "Educational impact demonstrated", "type": "boolean"},
        {"key": "services_required", "label": "Requires special education services", "type": "boolean"},
        {
            "key": "overall_eligibility",
            "label": "Overall eligibility determination",
            "type": "select",
            "options": [
                "Eligible for Speech/Language Services",
                "Not Eligible - Does not meet criteria",
                "Not Eligible - No adverse educational impact",
                "Pending additional assessment",
            ],
        },
    ],
}

CONCLUSION: dict[str, Any] = {
    "key": "conclusion",
    "title": "Conclusion",
    "fields": [
        {"key": "primary_diagnosis", "label": "Primary Diagnosis", "type": "string"},
        {"key": "severity_level", "label": "Severity Level", "type": "select",
         "options": ["Mild", "Moderate", "Severe"]},
        {"key": "prognosis", "label": "Prognosis", "type": "select",
         "options": ["Excellent", "Good", "Fair", "Poor"]},
        {"key": "summary_statement", "label": "Summary", "type": "string"},
    ],
}

RECOMMENDATIONS: dict[str, Any] = {
    "key": "recommendations",
    "title": "Recommendations",
    "fields": [
        {"key": "services", "label": "Recommended services", "type": "array"},
        {"key": "frequency", "label": "Service frequency", "type": "string"},
        {"key": "goals", "label": "Goal areas", "type": "array"},
        {"key": "home_strategies", "label": "Home strategies", "type": "string"},
    ],
}

SECTION_SCHEMAS: dict[str, dict[str, Any]] = {
    schema["key"]: schema
    for schema in (
        HEADER,
        VALIDITY_STATEMENT,
        ASSESSMENT_RESULTS,
        LANGUAGE_SAMPLE,
        PARENT_CONCERN,
        ASSESSMENT_TOOLS,
        ELIGIBILITY_CHECKLIST,
        CONCLUSION,
        RECOMMENDATIONS,
    )
}

SECTION_TYPE_ALIASES: dict[str, str] = {"heading": "header"}

__all__ = ["SECTION_SCHEMAS", "SECTION_TYPE_ALIASES"]
