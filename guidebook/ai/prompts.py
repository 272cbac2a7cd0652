"""Prompt builders for outline, chapter and translation calls."""

from __future__ import annotations

import json

from guidebook.ai.outline import ChapterOutline

LANGUAGE_NAMES = {"ENGLISH": "English", "GERMAN": "German", "FRENCH": "French", "SPANISH": "Spanish", "ITALIAN": "Italian"}

_NARRATIVE_STYLE = """WRITING STYLE:
- Use simple, engaging, conversational English
- Write in second person ("you") to connect with readers
- Use short paragraphs (3-5 sentences maximum)
- Include personal stories and examples
- Make it warm and inviting, not stiff or academic
- Focus on practical advice readers can actually use
- NO lists or bullet points - write in flowing prose"""


def _chapter_structure(chapter: ChapterOutline) -> str:
  return json.dumps(chapter.to_dict(), indent=2, ensure_ascii=False)


def outline_prompt(title: str, subtitle: str | None, number_of_chapters: int) -> str:
  return f"""You are a professional travel guide book writer. Create a detailed {number_of_chapters}-chapter outline for a travel guide book.

Book Title: "{title}"
Subtitle: "{subtitle or ''}"

REQUIREMENTS:
1. Start with an Introduction chapter
2. Create {number_of_chapters - 2} main content chapters (chapters 2-{number_of_chapters - 1})
3. End with a Conclusion chapter (chapter {number_of_chapters})
4. Each chapter must have exactly 3 sections
5. Each section must have exactly 3 subsections

STRUCTURE:
- Introduction: Set the stage, explain what makes this destination special, how to use the guide
- Main Chapters: Cover practical travel information, attractions, culture, food, activities, day trips
- Conclusion: Key takeaways, practical tips, emergency contacts

OUTPUT FORMAT (JSON):
{{
  "chapters": [
    {{
      "chapterNumber": 1,
      "chapterTitle": "Introduction",
      "sections": [
        {{"sectionTitle": "Why [Destination] Pulls You In", "subsections": ["Unique characteristic 1", "Unique characteristic 2", "Unique characteristic 3"]}},
        {{"sectionTitle": "How to Use This Guide", "subsections": ["Understanding the structure", "Planning your trip", "Tips for navigation"]}},
        {{"sectionTitle": "What to Expect This Year", "subsections": ["New developments", "Seasonal patterns", "Cost expectations"]}}
      ]
    }}
  ]
}}

Generate the complete outline now as valid JSON:"""


def introduction_prompt(title: str, subtitle: str | None, chapter: ChapterOutline) -> str:
  return f"""You are a professional travel guide book writer. Write the complete Introduction chapter for this travel guide:

Title: "{title}"
Subtitle: "{subtitle or ''}"

Chapter Structure:
{_chapter_structure(chapter)}

{_NARRATIVE_STYLE}

TONE:
- Friendly and helpful, like talking to a friend
- Honest and authentic
- Encouraging and exciting about the destination

LENGTH: Write approximately 600-700 words covering all sections and subsections from the outline.

Write the complete Introduction chapter now:"""


def chapter_prompt(title: str, subtitle: str | None, chapter: ChapterOutline) -> str:
  heading = f"{title}: {subtitle}" if subtitle else title
  return f"""You are a professional travel guide book writer. Write Chapter {chapter.number}: "{chapter.title}" for the travel guide "{heading}".

Chapter Structure:
{_chapter_structure(chapter)}

{_NARRATIVE_STYLE}
- Share travel experiences: "I once..." or "A traveler told me..."
- Paint pictures with words - help readers visualize the experience

CONTENT APPROACH:
- Open each section with a personal story or vivid scene
- Weave practical information into narrative form
- Use specific details (names, times, places) to add authenticity
- Include sensory details (sounds, smells, sights, tastes)
- Share insider tips naturally within the narrative
- Explain the "why" behind recommendations, not just the "what"

TONE:
- Friendly and helpful, like a knowledgeable friend sharing secrets
- Honest and authentic - mention both positives and challenges

LENGTH: Write approximately 1,000-1,100 words covering all sections and subsections from the outline.

Write the complete chapter now:"""


def conclusion_prompt(title: str, subtitle: str | None, chapter: ChapterOutline) -> str:
  return f"""You are a professional travel guide book writer. Write the Conclusion chapter for this travel guide:

Title: "{title}"
Subtitle: "{subtitle or ''}"

Chapter Structure:
{_chapter_structure(chapter)}

WRITING STYLE FOR CONCLUSION:
- Start with a warm, reflective paragraph summarizing the journey
- For practical sections, you CAN use lists and bullet points
- Keep it encouraging and inspiring
- End with emergency contacts in a clear list format

STRUCTURE:
1. Opening paragraph: Reflective, warm prose about the trip experience
2. Key Takeaways: Use bullet points for clarity
3. Practical Tips: Use lists for easy reference
4. Final Encouragement: Return to prose, inspiring and warm
5. Emergency Contacts: Clear list with phone numbers

LENGTH: Write approximately 600-650 words.

Write the complete Conclusion chapter now:"""


def about_book_prompt(title: str) -> str:
  return f"""Write an "About Book" section for a travel guide titled "{title}".

This should be 2-3 paragraphs explaining:
- What makes this guide different from typical travel guides
- Who this guide is for (solo travelers, couples, families, etc.)
- The practical approach and flexibility built into the guide
- How it helps readers create their own path

STYLE: Warm, inviting, and practical. Make readers feel confident about using this guide.

Write the About Book section now:"""


def translation_prompt(text: str, language: str, *, keep_style: bool) -> str:
  """Build a translation prompt; titles and metadata skip the style block."""
  language_name = LANGUAGE_NAMES.get(language, "English")
  if keep_style:
    style = """CRITICAL: Maintain the exact same conversational, personal tone as the original. This is a travel guide written in a warm, friendly style with personal anecdotes. Keep:
- The second person "you" perspective
- Personal stories (translate "I once..." naturally)
- Short, easy-to-read paragraphs
- Sensory descriptions and vivid language"""
  else:
    style = "Translate accurately while maintaining clarity."

  return f"""You are a professional translator specializing in travel guides. Translate the following English text to {language_name}.

{style}

TRANSLATION RULES:
1. Translate naturally for native speakers of {language_name}
2. Adapt idioms and cultural references appropriately
3. Keep place names in their original form
4. Maintain paragraph structure exactly
5. Keep the same level of detail and description

Original English text:
{text}

Provide ONLY the translated text, no explanations or notes:"""
