"""This package contain modules related to large language models (LLMs).
prompts.py : Contain instruction prompts
openai.py : Contain OpenAI LLM initialization
"""

from .prompts import _episode_extraction_prompt
from .openai import init_llm_openai


__all__ = ["_episode_extraction_prompt", "init_llm_openai"]
