"""Shared constants for document prompts."""

from __future__ import annotations

DEFAULT_MAX_CODE_LENGTH = 50_000

TRUNCATION_MARKER = "\n\n// ... code truncated for length ..."

SYSTEM_PROMPTS: dict[str, str] = {
    "requirements": (
        "You are a professional software requirements analyst. Based on the provided code or "
        "description, produce a clear and complete software requirements document.\n\n"
        "The document should include:\n"
        "1. Project overview\n"
        "2. Functional requirements\n"
        "3. User stories\n"
        "4. Non-functional requirements (if any)\n"
        "5. Business rules\n\n"
        "Write in Markdown and keep the document professional and easy to read."
    ),
    "design": (
        "You are a senior software architect. Based on the provided code or description, "
        "produce a professional software design document.\n\n"
        "The document should include:\n"
        "1. System overview\n"
        "2. Architecture\n"
        "3. Module design\n"
        "4. Class and component design\n"
        "5. Data flow\n"
        "6. Interface design\n\n"
        "Where it helps, add architecture or flow diagrams in Mermaid syntax. Write in Markdown."
    ),
    "api": (
        "You are an API documentation expert. Based on the provided code or description, "
        "produce detailed API reference documentation.\n\n"
        "The document should include:\n"
        "1. API overview\n"
        "2. Endpoint or function list\n"
        "3. Details for each entry:\n"
        "   - Path or signature\n"
        "   - Method\n"
        "   - Parameters\n"
        "   - Response format\n"
        "   - Example usage\n"
        "4. Error codes\n\n"
        "Write in Markdown and use tables for parameter details where appropriate."
    ),
    "test": (
        "You are a software testing expert. Based on the provided code or description, "
        "produce a complete test document.\n\n"
        "The document should include:\n"
        "1. Test overview\n"
        "2. Test scope\n"
        "3. Test cases:\n"
        "   - Case ID\n"
        "   - Scenario\n"
        "   - Preconditions\n"
        "   - Steps\n"
        "   - Expected result\n"
        "4. Boundary condition tests\n"
        "5. Error handling tests\n\n"
        "Write in Markdown and present test cases as tables."
    ),
}

TASK_DESCRIPTIONS: dict[str, str] = {
    "requirements": "Produce a professional **software requirements document** from the content below.",
    "design": "Produce a professional **software design document** from the content below.",
    "api": "Produce a detailed **API reference document** from the content below.",
    "test": "Produce a complete **software test document** from the content below.",
}

OUTPUT_REQUIREMENTS: dict[str, str] = {
    "requirements": (
        "1. Use Markdown\n"
        "2. Include a project overview, functional requirements and user stories\n"
        "3. Keep each requirement clear and measurable\n"
        "4. Assign a priority (high/medium/low) to every functional requirement\n"
        "5. Number requirements so they can be traced"
    ),
    "design": (
        "1. Use Markdown\n"
        "2. Cover system architecture, module design and class design\n"
        "3. Add architecture or class diagrams in Mermaid syntax\n"
        "4. Describe dependencies between modules\n"
        "5. Record design decisions and their rationale"
    ),
    "api": (
        "1. Use Markdown\n"
        "2. Document every parameter of each entry\n"
        "3. Present parameters in tables\n"
        "4. Provide request and response examples\n"
        "5. Describe error handling"
    ),
    "test": (
        "1. Use Markdown\n"
        "2. Present test cases as tables\n"
        "3. Cover both normal and failure paths\n"
        "4. Cover boundary conditions\n"
        "5. Give every case an explicit expected result"
    ),
}

DOC_TYPE_NAMES: dict[str, str] = {
    "requirements": "Requirements Document",
    "design": "Design Document",
    "api": "API Document",
    "test": "Test Document",
}


__all__ = [
    "DEFAULT_MAX_CODE_LENGTH",
    "DOC_TYPE_NAMES",
    "OUTPUT_REQUIREMENTS",
    "SYSTEM_PROMPTS",
    "TASK_DESCRIPTIONS",
    "TRUNCATION_MARKER",
]
