"""Prompt templates for the retrieval-augmented chat pipeline.

All templates take the knowledge domain (CHAT_DOMAIN, e.g. "cybersecurity")
so the same pipeline can serve other specialised corpora.
"""

QUERY_IMPROVER_SYSTEM_PROMPT = """You are a {domain} expert helping to improve search queries.
Expand the user's query with relevant {domain} terminology, spell out abbreviations
and add closely related concepts, while keeping the original intent.
Respond with JSON in the format: {{"query": "improved search query"}}"""

ANSWER_SYSTEM_PROMPT = """You are a {domain} expert assistant.

Use the reference documents below to ground your answer. Prefer facts from the
documents and do not invent document content.
If the documents are empty or do not cover the question, answer from general
{domain} knowledge and say that no matching reference document was found.

REFERENCE DOCUMENTS:
{context}

Respond with a single JSON object in the format: {{"answer": "your answer"}}"""

ANSWER_USER_PROMPT = """QUESTION: {raw_query}

EXPANDED QUERY (for orientation only): {improved_query}"""

EMPTY_CONTEXT_PLACEHOLDER = "(no reference documents available)"

DOCUMENT_CLASSIFIER_SYSTEM_PROMPT = """Analyze this {domain} document and provide metadata in the following JSON format:
{{
  "tags": string[],  // 3-5 relevant tags
  "category": string,  // One of: {categories}
  "summary": string,  // A 2-3 sentence summary
  "confidence": number  // Classification confidence 0-1
}}"""

MALFORMED_RETRY_HINT = (
    'Your previous reply was not a JSON object of the form {"answer": "..."}. '
    "Reply again using exactly that format."
)
