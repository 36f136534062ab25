"""Scripted interviewer replies used when the completion service is unavailable."""

from mock_interviewer.session.schemas import Personality

FALLBACK_RESPONSES: dict[Personality, tuple[str, ...]] = {
    Personality.INTIMIDATOR: (
        "That's not convincing. Give me something better.",
        "I don't buy that. Prove it to me.",
        "Weak answer. What else do you have?",
        "That's exactly what everyone says. Be original.",
        "Not impressed. Try again.",
    ),
    Personality.FRIENDLY: (
        "That's interesting! Can you tell me more about that experience?",
        "I love hearing about that! How did that make you feel?",
        "That sounds like a great learning opportunity. What did you take away from it?",
        "You seem passionate about this. What drives that passion?",
        "That's wonderful! How do you think that experience prepared you for this role?",
    ),
    Personality.ROBOTIC: (
        "Noted. Please provide additional details.",
        "Understood. Specify your methodology.",
        "Data recorded. Quantify your results.",
        "Information processed. Elaborate on metrics.",
        "Input received. Define success parameters.",
    ),
    Personality.CURVEBALL: (
        "Here's a curveball: If you were a kitchen appliance, which one would you be and why?",
        "Let's try something different. How would you explain our company to a five-year-old?",
        "Interesting! Now, if you had to choose a theme song for your work style, what would it be?",
        "Plot twist: you're stranded on a desert island with only office supplies. How do you survive?",
        "Curveball time: what's the most unusual way you've solved a problem?",
    ),
}
