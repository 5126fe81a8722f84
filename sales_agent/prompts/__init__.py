"""System prompt composition for the sales agent."""

from .assembler import assemble_system_prompt, format_current_time
from .base import SALES_AGENT_SYSTEM_PROMPT
