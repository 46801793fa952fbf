from models.chat import RetrievedChunk

SYSTEM_PROMPT = """You are an assistant that answers from the given context only.
If the context does not support an answer, do not guess: say that it is unknown.
Answer in {language}."""

class PromptBuilder:
    @staticmethod
    def build_context(contexts: list[RetrievedChunk]) -> str:
        parts = [f"[#{i + 1}] source: {c.source}\n{c.text}".strip() for i, c in enumerate(contexts)]
        return "\n\n".join(parts)

    @staticmethod
    def build_messages(question: str, contexts: list[RetrievedChunk], language: str = "Japanese") -> list[dict]:
        """
        Compiles the system prompt and numbered retrieval hits into chat messages.
        An empty hit list still produces a prompt, with a '(no context)' placeholder.
        """
        context_str = PromptBuilder.build_context(contexts) or "(no context)"

        user_content = f"# Context\n{context_str}\n\n# Question\n{question}\n\n# Answer ({language})\n"

        return [
            {"role": "system", "content": SYSTEM_PROMPT.format(language=language)},
            {"role": "user", "content": user_content}
        ]
