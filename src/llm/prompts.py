"""Prompts for newsletter story extraction"""

# The model first classifies the email and only then extracts stories
STORY_EXTRACTION_PROMPT = """Your task is to extract news stories from an email. Before extracting anything, decide whether the email is a CONTENT NEWSLETTER.

A content newsletter curates links to content hosted elsewhere: articles, blog posts, podcasts, videos, repositories and similar.

The following are NOT content newsletters. For them, return {{"stories": []}}:
- Marketing emails in which a brand promotes its own products or services
- Transactional emails such as order confirmations, shipping updates or account notifications
- Promotional emails built around shopping links, discount codes or product showcases
- Emails whose links all point back to the sender's own website, shop or app

Subject: {subject}

Body:
{body}

Return a JSON object with exactly this structure:
{{
  "stories": [
    {{
      "headline": "Story headline",
      "teaser": "Content type prefix, then the reused summary if present, otherwise 2-4 sentences",
      "url": "https://example.com/article"
    }}
  ]
}}

CRITICAL INSTRUCTIONS:
- First decide whether this is a content newsletter. If it is not, return {{"stories": []}}
- If it is a content newsletter, extract ALL stories, not only the ones named in the subject line
- Go through the WHOLE email from top to bottom
- Include every story that has its own URL
- Do NOT stop after a few stories; extract as many as the email contains

FORMATTING RULES:
- Write headline and teaser in the language of the original email
- Keep headlines SHORT: 5-8 words at most
- Start every teaser with a short content type label (1-2 words) and a period, e.g. "Article.", "Blog post.", "Podcast.", "Video.", "LinkedIn Post.", "GitHub Repo.", "Research Paper.", "News.", "Tutorial.", "Talk.", "Tool."
- If the newsletter already has a summary paragraph for the linked content, reuse it word for word after the content type label, whatever its length
- Otherwise write teasers of 2-4 sentences, preferring informative summaries over terse ones
- Every story MUST link to the actual article with a unique URL
- If the email contains only one URL, create only one story
- Never create several stories for the same URL

WHAT TO EXTRACT:
- Each story is a MAIN article, post or resource featured in the newsletter
- Use the primary link of each distinct story
- Stories usually appear as separate entries with their own headline and description

EXCLUSION RULES (apply these BEFORE adding a story):
- NEVER extract newsletter boilerplate, i.e. anything about the newsletter itself rather than external content. Examples: "Unsubscribe", "Manage preferences", "Privacy Policy", "Terms of Service", "Cookie Policy", "Impressum", "Datenschutz", "Abmelden", "Werbung abbestellen". This applies in ALL languages.
- Exclude order links, shopping links and paid content
- Exclude sponsored content, advertisements and promotions. A story is sponsored when the newsletter LABELS it so, with markers such as "(Sponsor)", "Sponsored", "Ad", "Partner Post", "Promoted", "Brought to you by" or "In partnership with" next to the headline or as a section header. Do NOT exclude editorial articles that merely discuss advertising, partnerships or affiliate programs.
- Exclude giveaways, sweepstakes, contests and raffles (Gewinnspiel, Verlosung, etc.)
- Exclude social media links (follow us, share, tweet)
- Exclude footnote, reference and citation links inside story text
- Exclude "read more", "learn more" and other supplementary links belonging to a story already included
- Only include actual news stories or articles with readable content
- If there are no valid stories with URLs, return {{"stories": []}}
"""


def build_extraction_prompt(subject: str, body: str) -> str:
    """
    Build the story extraction prompt for an email.

    Args:
        subject: Decoded email subject
        body: Plain text email body

    Returns:
        Formatted prompt string
    """
    return STORY_EXTRACTION_PROMPT.format(subject=subject, body=body)
