"""
Static preventive advice keyed by symptom.

Lookup order: case-insensitive exact match, then substring match in either
direction, then a generic list that is never empty.
"""

PREVENTION_RECOMMENDATIONS: dict[str, list[str]] = {
    "migraine": [
        "Stay well hydrated throughout the day",
        "Avoid bright lights and loud noises",
        "Ensure you get 7-8 hours of sleep tonight",
        "Keep your rescue medication accessible",
        "Avoid known trigger foods (caffeine, alcohol, aged cheese)",
        "Practice stress-reduction techniques",
    ],
    "headache": [
        "Stay hydrated with water",
        "Reduce screen time and take regular breaks",
        "Ensure proper sleep schedule",
        "Check your posture if working at a desk",
        "Consider a gentle walk in fresh air",
    ],
    "fatigue": [
        "Prioritize sleep tonight - aim for 8+ hours",
        "Eat iron-rich foods and stay hydrated",
        "Plan lighter activities for tomorrow",
        "Take short breaks throughout the day",
        "Consider a brief afternoon nap if possible",
    ],
    "anxiety": [
        "Practice deep breathing or meditation",
        "Limit caffeine intake",
        "Engage in light exercise or yoga",
        "Ensure adequate sleep",
        "Consider journaling your thoughts",
        "Reach out to supportive friends or family",
    ],
    "insomnia": [
        "Avoid caffeine after 2 PM",
        "Limit screen time 1 hour before bed",
        "Keep bedroom cool and dark",
        "Try relaxation techniques before sleep",
        "Maintain a consistent sleep schedule",
    ],
    "stomach pain": [
        "Eat smaller, more frequent meals",
        "Avoid spicy or fatty foods",
        "Stay hydrated with water or herbal tea",
        "Consider bland foods (rice, bananas, toast)",
        "Avoid lying down immediately after eating",
    ],
    "low mood": [
        "Spend time outdoors in natural light",
        "Connect with friends or loved ones",
        "Engage in enjoyable activities",
        "Exercise - even a short walk helps",
        "Practice gratitude or positive thinking",
        "Ensure adequate sleep",
    ],
    "poor sleep": [
        "Establish a relaxing bedtime routine",
        "Keep consistent sleep/wake times",
        "Avoid heavy meals before bed",
        "Create a cool, dark sleep environment",
        "Limit daytime napping",
    ],
    "high stress": [
        "Schedule breaks and downtime",
        "Practice mindfulness or meditation",
        "Engage in physical activity",
        "Delegate tasks if possible",
        "Ensure you're eating regular meals",
        "Talk to someone you trust",
    ],
}

GENERIC_RECOMMENDATIONS: list[str] = [
    "Monitor your symptoms closely",
    "Stay well hydrated",
    "Get adequate rest",
    "Avoid known triggers",
    "Contact your healthcare provider if symptoms worsen",
]


class PreventionTableLookup:
    """RecommendationLookup backed by an in-process advice table."""

    def __init__(
        self,
        table: dict[str, list[str]] | None = None,
        fallback: list[str] | None = None,
    ) -> None:
        source = PREVENTION_RECOMMENDATIONS if table is None else table
        self.table = {key.lower(): list(advice) for key, advice in source.items()}
        self.fallback = list(GENERIC_RECOMMENDATIONS if fallback is None else fallback)
        if not self.fallback:
            raise ValueError("fallback recommendations must not be empty")

    def recommendations_for(self, symptom: str) -> list[str]:
        label = symptom.strip().lower()

        if label in self.table:
            return list(self.table[label])

        if label:
            for key, advice in self.table.items():
                if key in label or label in key:
                    return list(advice)

        return list(self.fallback)
