"""
Prompt text for the marketing message helper.
"""

SUGGESTION_SYSTEM_PROMPT = (
    "You are an expert marketing copywriter specializing in creating high-converting "
    "messages for email and SMS campaigns. You know how to craft messages that engage "
    "customers and drive action."
)

VARIANTS_SYSTEM_PROMPT = (
    "You are an expert marketing copywriter. Create engaging message variants while "
    "preserving the original intent."
)


def build_suggestion_prompt(campaign_type, audience_description):
    return f"""
Create a compelling marketing message for a {campaign_type} campaign.

Target audience: {audience_description}

Message format requirements:
- Should be concise (max 150-200 characters for SMS, slightly longer for email)
- Should include a clear call-to-action
- Should be personalized where appropriate (use {{firstName}} or {{name}} placeholder)
- Should have an engaging tone appropriate for the audience
- Should avoid overly salesy language
- Should convey value to the customer

Campaign type: {campaign_type}

Return ONLY the message text, no explanations:""".strip()


def build_variants_prompt(message, objective=''):
    return f"""
Create 3 different variants of this marketing message with different tones.
Original message: "{message}"
Campaign objective: "{objective}"

Create variants with these tones:
1. Professional and formal
2. Friendly and casual
3. Urgent and compelling

For each variant:
- Keep the core message and offers intact
- Adjust tone and style only
- Maintain personalization placeholders like {{name}}, {{firstName}}
- Keep it under 200 characters if possible

Return JSON in this format:
{{
  "message_variants": [
    {{
      "text": "variant message here",
      "tone": "professional",
      "score": 85
    }}
  ]
}}

Return only valid JSON.""".strip()
