from langchain_core.prompts import ChatPromptTemplate


# Prompt for turning extracted document text into a summary + markdown rendition
document_insights_prompt = ChatPromptTemplate.from_messages(
    [
        (
            "system",
            (
                "You are a document analyst working inside a document vault.\n"
                "You receive the raw text extracted from one uploaded file.\n\n"
                "Produce two fields:\n"
                "- summary: a plain-text summary of the document between 50 and 1000 characters.\n"
                "  Describe what the document is and its key points. No markdown in this field.\n"
                "- markdown: a clean, well-structured markdown rendition of the document content,\n"
                "  using headings, lists and tables where they help readability.\n\n"
                "STRICT RULES:\n"
                "1. Use ONLY the provided text. Do NOT invent facts.\n"
                "2. If the text is truncated, work with what is there.\n"
                "3. Respond with both fields populated.\n"
            ),
        ),
        ("human", "Document text:\n\n{document}"),
    ]
)


PROMPT_REGISTRY = {
    "document_insights": document_insights_prompt,
}
