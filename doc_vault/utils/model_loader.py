from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_groq import ChatGroq

from doc_vault.exception.custom_exception import AIServiceError
from doc_vault.logger import GLOBAL_LOGGER as log
from doc_vault.utils.settings import InsightSettings


class ModelLoader:
    """
    Responsible for:
    - Loading the chat model used for document insights (google / groq)
    """

    def __init__(self, settings: InsightSettings):
        self.settings = settings

    def load_llm(self):
        """
        Load and return the configured LLM model.
        Raises AIServiceError when no credential is configured.
        """
        if not self.settings.api_key:
            raise AIServiceError(
                f"No API key configured for provider '{self.settings.provider}'"
            )

        provider = self.settings.provider
        model = self.settings.model_name
        temp = self.settings.temperature
        max_t = self.settings.max_tokens

        log.info("Loading LLM | provider=%s | model=%s", provider, model)

        if provider == "google":
            return ChatGoogleGenerativeAI(
                model=model,
                google_api_key=self.settings.api_key,
                temperature=temp,
                max_output_tokens=max_t,
            )

        if provider == "groq":
            return ChatGroq(
                model=model,
                api_key=self.settings.api_key,
                temperature=temp,
                max_tokens=max_t,
            )

        raise ValueError(f"Unsupported provider {provider}")
