from __future__ import annotations

from typing import Any, Dict, List


# A dimension contributes its templates when its 1-5 score is at or below this.
CONCERN_THRESHOLD = 3

# Risk bands over the mean of the four scores (shared with the model prompt).
HIGH_RISK_MAX_AVG = 2.0
MODERATE_RISK_MAX_AVG = 3.5

MAX_FOCUS_AREAS = 3
MAX_THERAPY_GOALS = 3
MAX_ACTIVITIES = 2
MAX_SUGGESTIONS = 2


DIMENSIONS: List[Dict[str, Any]] = [
    {
        "field": "eye_contact",
        "label": "Eye Contact",
        "scale": "1=Rarely makes eye contact, 5=Sustained, age-appropriate eye contact",
        "focus_area": "Visual Engagement & Eye Contact Development",
        "goal": "Sustain eye contact for 5-7 seconds during face-to-face play in 4 of 5 daily sessions within 8 weeks",
        "activity": (
            "Mirror Game: sit face-to-face and make exaggerated expressions and sounds to draw the "
            "child's gaze to your face. Reward 2-3 second glances with a favourite toy. "
            "Three 5-minute sessions a day."
        ),
    },
    {
        "field": "speech_level",
        "label": "Speech Development",
        "scale": "1=Non-verbal, 5=Age-appropriate speech",
        "focus_area": "Speech & Communication Skills",
        "goal": "Add 20 functional words to expressive vocabulary within 3 months using visual supports and repetition",
        "activity": (
            "Picture Communication Cards: make photo cards of 10 favourite items. Name each item clearly, "
            "have the child request items by pointing to a card, then add verbal prompts. "
            "Practise at mealtimes and during play."
        ),
    },
    {
        "field": "social_response",
        "label": "Social Response",
        "scale": "1=No social interaction, 5=Age-appropriate social engagement",
        "focus_area": "Social Interaction & Engagement",
        "goal": "Initiate 3-5 social bids per hour during structured play sessions within 10 weeks",
        "activity": (
            "Turn-Taking Games: roll a ball back and forth or build a block tower together, cheering each "
            "turn. Start with 3-5 turns and lengthen the game gradually."
        ),
    },
    {
        "field": "sensory_reactions",
        "label": "Sensory Reactions",
        "scale": "1=Severe sensory difficulties, 5=No sensory concerns",
        "focus_area": "Sensory Processing & Integration",
        "goal": "Tolerate 3 new textures for 2 minutes each with calm engagement within 6 weeks",
        "activity": (
            "Sensory Exploration Box: fill a box with soft fabric, smooth stones and bumpy toys. Let the "
            "child explore for 30 seconds at first, praise calm engagement, and extend the time weekly."
        ),
    },
]


GENERIC_FOCUS_AREAS: List[str] = [
    "Fine Motor Skills Development",
    "Play-Based Learning",
    "Emotional Regulation",
]

GENERIC_THERAPY_GOALS: List[str] = [
    "Complete 2 age-appropriate self-help routines with fading hand-over-hand support within 3 months",
    "Follow 2-step instructions in 4 of 5 opportunities in a structured setting within 8 weeks",
    "Express basic needs with words, signs or picture cards at least 5 times a day within 6 weeks",
]

GENERIC_ACTIVITIES: List[str] = [
    (
        "Structured Play Routine: hold a 15-minute play session each day with a visual schedule "
        "(\"first play, then snack\") to practise transitions and reward engagement."
    ),
    (
        "Music & Movement: play favourite songs and model simple actions (clap, jump, spin) for the "
        "child to imitate. Two or three songs before the bedtime routine."
    ),
]

REFERRAL_SUGGESTIONS: List[str] = [
    (
        "Professional Evaluation: schedule a comprehensive assessment with a developmental "
        "pediatrician or child psychologist for formal diagnosis and an individual treatment plan."
    ),
    (
        "Therapy Services: discuss speech, occupational or ABA therapy with your care team; "
        "parent-mediated programs show the strongest outcomes."
    ),
]

ASSESSMENT_BY_RISK: Dict[str, str] = {
    "High": (
        "{name}{age_note} shows significant developmental concerns across multiple areas. "
        "Prompt professional evaluation and intensive early intervention are strongly recommended."
    ),
    "Moderate": (
        "{name}{age_note} shows some developmental delays that would benefit from targeted "
        "therapeutic support and close monitoring."
    ),
    "Low": (
        "{name}{age_note} shows age-appropriate development in most areas. Enrichment "
        "activities and routine monitoring are recommended."
    ),
}


# Partial submissions: no dimension is complete enough to interpret.
PARTIAL_FOCUS_AREAS: List[str] = [
    "Complete the eye contact and social response ratings",
    "Complete the speech development and sensory reaction ratings",
    "Confirm the child's age for age-appropriate interpretation",
]

PARTIAL_THERAPY_GOALS: List[str] = [
    "Finish all four behavioral ratings so a developmental profile can be produced",
    "Record observations across at least one week of everyday routines before rating",
]

PARTIAL_ACTIVITIES: List[str] = [
    (
        "Observation Diary: for one week, note when the child makes eye contact, uses words or "
        "gestures, responds to others, and reacts to sounds or textures. Use the notes to complete "
        "the assessment."
    ),
]

PARTIAL_SUGGESTIONS: List[str] = [
    "Return to the screening form and complete every rating to receive tailored recommendations.",
    "If you already have concerns, share them with your pediatrician without waiting for the results.",
]


# Photo-only submissions: a single facial expression reading.
PHOTO_CONFIDENCE_BANDS = [
    (0.7, "Low"),
    (0.4, "Moderate"),
]
PHOTO_LOW_CONFIDENCE_RISK = "Pending"

PHOTO_FOCUS_AREAS: List[str] = [
    "Complete the full behavioral assessment",
    "Observe emotional expression across daily routines",
    "Track social engagement during play",
]

PHOTO_THERAPY_GOALS: List[str] = [
    "Complete all four behavioral ratings within the next week",
    "Log the child's emotional responses in 3 different settings over 2 weeks",
    "Share observations with a developmental specialist within 1 month",
]

PHOTO_ACTIVITIES: List[str] = [
    (
        "Emotion Naming Game: look at picture books together and name the feelings shown on each "
        "face. Ask the child to copy the expression. 10 minutes a day."
    ),
    (
        "Feelings Check-In: at three fixed points in the day, ask how the child feels using simple "
        "face cards and note the answer."
    ),
]
