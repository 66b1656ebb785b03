"""
Prompt construction for the reply generation chain

Pure functions: every prompt the chain sends to the model is built here, along with
the parsing of the model's JSON answers.
"""
import json
import logging
import math
import re
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

PLATFORM_GUIDELINES = {
    "x": """Twitter/X Guidelines:
- Keep responses concise (under 280 characters when possible)
- Use relevant hashtags strategically (1-3 max)
- Encourage retweets and replies
- Use threading for longer thoughts
- Leverage trending topics when relevant""",
    "facebook": """Facebook Guidelines:
- Moderate length posts (1-3 paragraphs)
- Use emojis to enhance emotional connection
- Ask questions to encourage comments
- Share personal insights or experiences
- Use line breaks for readability""",
    "linkedin": """LinkedIn Guidelines:
- Professional yet personable tone
- Longer-form content (3-5 paragraphs)
- Include industry insights or career advice
- Use professional hashtags
- Encourage meaningful professional discussions
- Share expertise and thought leadership""",
}

# Sources that share another platform's guidelines
PLATFORM_ALIASES = {"twitter": "x"}

TONE_INSTRUCTIONS = {
    "professional": "Maintain a polished, authoritative voice while being approachable",
    "casual": "Use conversational language, contractions, and relatable expressions",
    "humorous": "Incorporate wit, wordplay, or light humor appropriate to the context",
    "inspirational": "Use uplifting language that motivates and encourages action",
    "educational": "Provide valuable insights while maintaining an accessible teaching tone",
    "empathetic": "Show understanding and emotional intelligence in your response",
}

SENTIMENT_ADJUSTMENTS = {
    "positive": "Match and amplify the positive energy",
    "negative": "Acknowledge concerns while offering constructive perspective",
    "neutral": "Bring appropriate energy based on the desired tone",
}

DEFAULT_CONTEXT_ANALYSIS = {
    "sentiment": "neutral",
    "topics": ["general"],
    "engagement_potential": "medium",
    "content_type": "conversational",
    "target_audience": "general audience",
    "key_points": ["engagement"],
    "cultural_context": "general",
    "trending_elements": [],
}

DEFAULT_CONFIDENCE = 0.7

_LIST_FIELDS = ("topics", "key_points", "trending_elements")
_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)


def get_platform_guidelines(platform: str) -> str:
    """Guidelines for a platform; unknown platforms get the X guidelines"""
    key = PLATFORM_ALIASES.get(platform, platform)
    return PLATFORM_GUIDELINES.get(key, PLATFORM_GUIDELINES["x"])


def get_tone_instructions(tone: str, context_analysis: Dict[str, Any]) -> str:
    base = TONE_INSTRUCTIONS.get(tone, TONE_INSTRUCTIONS["casual"])
    adjustment = SENTIMENT_ADJUSTMENTS.get(
        context_analysis.get("sentiment"), SENTIMENT_ADJUSTMENTS["neutral"]
    )
    return f"Tone: {tone}\n{base}\n{adjustment}"


def build_analysis_prompt(request) -> str:
    return f"""Analyze the following social media content and provide insights:

Platform: {request.source}
Type: {request.type}
Content: {request.post}
Author: {request.author or "Unknown"}
Tone Requested: {request.tone}

Provide analysis in this JSON format:
{{
  "sentiment": "positive|negative|neutral",
  "topics": ["topic1", "topic2"],
  "engagement_potential": "high|medium|low",
  "content_type": "informational|promotional|conversational|humorous",
  "target_audience": "description",
  "key_points": ["point1", "point2"],
  "cultural_context": "description",
  "trending_elements": ["element1", "element2"]
}}"""


def build_system_prompt(request, context_analysis: Dict[str, Any], custom_prompt: str = "") -> str:
    return f"""You are an expert social media manager with deep understanding of human psychology, cultural nuances, and platform-specific best practices.

{get_platform_guidelines(request.source)}

{get_tone_instructions(request.tone, context_analysis)}

Context Analysis:
- Sentiment: {context_analysis["sentiment"]}
- Topics: {", ".join(context_analysis["topics"])}
- Engagement Potential: {context_analysis["engagement_potential"]}
- Content Type: {context_analysis["content_type"]}
- Target Audience: {context_analysis["target_audience"]}
- Key Points: {", ".join(context_analysis["key_points"])}

Custom Instructions: {custom_prompt}

Generate a response that:
1. Matches the analyzed context and sentiment
2. Uses platform-appropriate formatting and style
3. Incorporates relevant trending elements when appropriate
4. Maintains authentic human-like communication
5. Optimizes for engagement while staying genuine
6. Respects cultural context and sensitivities"""


def build_user_prompt(request) -> str:
    prompt = f"Generate a {request.type} for {request.source}:\n\n"

    if request.type == "reply":
        prompt += f"Original Post: {request.post}\n"
        if request.author:
            prompt += f"Author: {request.author}\n"
        if request.url:
            prompt += f"Link: {request.url}\n"
        prompt += "\nCreate an engaging reply that adds value to the conversation."
    else:
        prompt += f"Topic/Keywords: {request.post}\n"
        prompt += "\nCreate an original post about this topic."

    if request.images:
        prompt += f"\n\nImages attached: {len(request.images)} image(s)"

    if request.video:
        prompt += "\n\nVideo content included"

    if request.quoted_post:
        prompt += f"\n\nQuoted content: @{request.quoted_post.handle}: {request.quoted_post.text}"

    return prompt


def build_enhancement_prompt(request, original_text: str, context_analysis: Dict[str, Any]) -> str:
    return f"""Review and enhance this social media response:

Original Response: {original_text}

Platform: {request.source}
Tone: {request.tone}
Context: {context_analysis["content_type"]}

Improve the response by:
1. Enhancing clarity and readability
2. Optimizing engagement potential
3. Ensuring platform-appropriate formatting
4. Adding subtle personality without being artificial
5. Maintaining the core message while improving flow

Provide the enhanced response in this JSON format:
{{
  "enhanced_text": "improved response here",
  "confidence_score": 0.85,
  "improvements_made": ["improvement1", "improvement2"]
}}"""


def parse_json_object(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Parse a JSON object out of a model answer

    Accepts bare JSON or JSON wrapped in a Markdown code fence. Returns None when the
    answer holds no JSON object.
    """
    if not text:
        return None

    candidate = text.strip()
    fenced = _FENCE_PATTERN.match(candidate)
    if fenced:
        candidate = fenced.group(1)

    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError:
        start, end = candidate.find("{"), candidate.rfind("}")
        if start == -1 or end <= start:
            return None
        try:
            parsed = json.loads(candidate[start:end + 1])
        except json.JSONDecodeError:
            return None

    return parsed if isinstance(parsed, dict) else None


def parse_context_analysis(text: Optional[str]) -> Dict[str, Any]:
    """Model analysis merged over the neutral defaults"""
    parsed = parse_json_object(text)
    if parsed is None:
        logger.info("Context analysis was not valid JSON, using default analysis")
        return dict(DEFAULT_CONTEXT_ANALYSIS)

    analysis = dict(DEFAULT_CONTEXT_ANALYSIS)
    for key, default in DEFAULT_CONTEXT_ANALYSIS.items():
        value = parsed.get(key)
        if value is None:
            continue
        if key in _LIST_FIELDS:
            if isinstance(value, str):
                value = [value]
            elif not isinstance(value, list):
                continue
            analysis[key] = [str(item) for item in value]
        else:
            analysis[key] = str(value)
    return analysis


def parse_enhancement(text: Optional[str], original_text: str) -> Dict[str, Any]:
    """Enhanced text, confidence and improvements; falls back to the original text"""
    fallback = {"text": original_text, "confidence": DEFAULT_CONFIDENCE, "improvements": []}

    parsed = parse_json_object(text)
    if parsed is None:
        logger.info("Enhancement was not valid JSON, keeping the generated response")
        return fallback

    enhanced = parsed.get("enhanced_text")
    if not isinstance(enhanced, str) or not enhanced.strip():
        return fallback

    try:
        confidence = float(parsed.get("confidence_score", DEFAULT_CONFIDENCE))
    except (TypeError, ValueError):
        confidence = DEFAULT_CONFIDENCE
    if not math.isfinite(confidence):
        confidence = DEFAULT_CONFIDENCE
    confidence = min(max(confidence, 0.0), 1.0)

    improvements = parsed.get("improvements_made") or []
    if not isinstance(improvements, list):
        improvements = [str(improvements)]

    return {
        "text": enhanced.strip(),
        "confidence": confidence,
        "improvements": [str(item) for item in improvements],
    }
