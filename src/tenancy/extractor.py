"""
Structured extraction of tenancy agreements through a language-model backend.
"""

import json
import logging
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Dict, Optional, Tuple

import openai
import yaml
from openai import OpenAI

from .config import DEFAULT_PROMPTS_FILE
from .exceptions import ExtractionError
from .models import ExtractedRecord

logger = logging.getLogger(__name__)


class ExtractionBackend(ABC):
    """Text-completion service: a prompt in, one textual completion out"""

    @abstractmethod
    def complete(self, system_prompt: str, user_prompt: str, timeout: float) -> str:
        """
        Return the completion text for the prompt.

        Raises:
            ExtractionError: If the call fails or exceeds ``timeout`` seconds
        """


class OpenAIBackend(ExtractionBackend):
    """ExtractionBackend on the OpenAI chat completions API"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gpt-4o-mini",
        temperature: float = 0.0,
        base_url: Optional[str] = None,
        client: Optional[OpenAI] = None
    ):
        """
        Initialize the backend.

        Args:
            api_key: OpenAI API key (or set OPENAI_API_KEY env var)
            model: Chat model name
            temperature: Sampling temperature; 0 keeps repeated runs stable
            base_url: Alternative API endpoint (default: the SDK's, or OPENAI_BASE_URL)
            client: Pre-built client, mainly for tests
        """
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.base_url = base_url
        self._client = client

    @property
    def client(self) -> OpenAI:
        # Built on first use so a missing API key fails the request, not startup.
        # SDK retries are off: one request makes at most one outbound call.
        if self._client is None:
            try:
                self._client = OpenAI(api_key=self.api_key, base_url=self.base_url, max_retries=0)
            except openai.OpenAIError as e:
                raise ExtractionError(f"OpenAI client not initialized: {e}") from e
        return self._client

    def complete(self, system_prompt: str, user_prompt: str, timeout: float) -> str:
        client = self.client
        try:
            response = client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt}
                ],
                temperature=self.temperature,
                timeout=timeout
            )
        except openai.APITimeoutError as e:
            raise ExtractionError(f"Extraction backend timed out after {timeout:.1f}s") from e
        except openai.OpenAIError as e:
            raise ExtractionError(f"Extraction backend call failed: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if content is None:
            raise ExtractionError("Extraction backend returned an empty completion")
        return content


def load_prompts(prompts_file: str) -> Dict[str, Dict[str, str]]:
    """Load prompts from YAML file"""
    try:
        with open(prompts_file, 'r', encoding='utf-8') as f:
            prompts_data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        raise FileNotFoundError(f"Prompts file '{prompts_file}' not found!")
    except yaml.YAMLError as e:
        raise ValueError(f"Error parsing prompts YAML file: {e}")
    return prompts_data.get('prompts', {})


class StructuredExtractor:
    """Turns document text into an ExtractedRecord via an ExtractionBackend"""

    def __init__(
        self,
        backend: ExtractionBackend,
        prompts_file: Optional[str] = None,
        timeout: float = 30.0
    ):
        """
        Initialize the extractor.

        Args:
            backend: Completion service to call
            prompts_file: Path to prompts YAML file (default: the packaged prompts.yaml)
            timeout: Seconds allowed for the backend call
        """
        self.backend = backend
        self.prompts = load_prompts(prompts_file or DEFAULT_PROMPTS_FILE)
        self.timeout = timeout

    def _get_prompt(self, prompt_category: str, prompt_type: str, **kwargs) -> str:
        """
        Get a prompt template and format it with provided variables.

        Args:
            prompt_category: Category of prompt (e.g., 'extraction')
            prompt_type: Type of prompt ('system' or 'user_template')
            **kwargs: Variables to format into the template

        Returns:
            Formatted prompt string
        """
        if prompt_category not in self.prompts:
            raise ValueError(f"Prompt category '{prompt_category}' not found in prompts file")

        if prompt_type not in self.prompts[prompt_category]:
            raise ValueError(f"Prompt type '{prompt_type}' not found in category '{prompt_category}'")

        template = self.prompts[prompt_category][prompt_type]

        try:
            return template.format(**kwargs)
        except KeyError as e:
            raise ValueError(f"Missing required variable '{e}' for prompt template")

    def build_prompt(self, document_text: str) -> Tuple[str, str]:
        """Return the (system, user) prompt pair for a document."""
        system_prompt = self._get_prompt("extraction", "system")
        user_prompt = self._get_prompt("extraction", "user_template", document_text=document_text)
        return system_prompt, user_prompt

    @staticmethod
    def parse_response(completion: str) -> ExtractedRecord:
        """
        Parse a backend completion into a record.

        The completion must be a raw JSON object. Markdown fences are not
        stripped: a fenced response is a backend contract violation.

        Raises:
            ExtractionError: If the completion is not a JSON object
        """
        try:
            data = json.loads(completion.strip(), parse_float=Decimal)
        except (json.JSONDecodeError, AttributeError) as e:
            raise ExtractionError(f"Extraction response is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise ExtractionError(
                f"Extraction response must be a JSON object, got {type(data).__name__}"
            )

        return ExtractedRecord.from_dict(data)

    def extract(self, document_text: str) -> ExtractedRecord:
        """
        Extract a structured tenancy record from document text.

        Args:
            document_text: Text of the tenancy agreement

        Returns:
            ExtractedRecord (possibly partially populated)

        Raises:
            ExtractionError: If the backend fails or its response is unusable
        """
        system_prompt, user_prompt = self.build_prompt(document_text)

        try:
            completion = self.backend.complete(system_prompt, user_prompt, self.timeout)
        except TimeoutError as e:
            raise ExtractionError(f"Extraction backend timed out after {self.timeout:.1f}s") from e

        record = self.parse_response(completion)
        logger.debug(
            "Extracted record: %d tenant(s), rent=%s, deposit=%s",
            len(record.tenants), record.rent.amount, record.deposit.amount
        )
        return record
