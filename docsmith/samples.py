"""Canned documents served by the mock generator in demo mode."""

from __future__ import annotations

from typing import Dict

SAMPLE_DOCUMENTS: Dict[str, str] = {
    "requirements": """# Software Requirements Document

## 1. Project Overview

docsmith is an AI-assisted documentation system that helps developers produce
software engineering documents from source code or plain descriptions.

## 2. Functional Requirements

### FR-1 Code analysis
- **Priority**: High
- **Description**: The system parses uploaded source files and extracts classes,
  functions, interfaces and imports.
- **Acceptance**: JavaScript, TypeScript and Python files are supported.

### FR-2 Document generation
- **Priority**: High
- **Description**: The system generates requirements, design, API and test
  documents from the analyzed code or a description.

### FR-3 Streaming output
- **Priority**: Medium
- **Description**: Generated text is delivered incrementally while the model
  is still writing.

## 3. User Stories

| ID | As a | I want to | So that |
|----|------|-----------|---------|
| US-1 | developer | upload a source file | I get an API document without writing it by hand |
| US-2 | product owner | describe a feature in prose | I get a first requirements draft |

## 4. Non-functional Requirements

- A generation request completes within 60 seconds.
- Credentials are never written to logs.
""",
    "design": """# Software Design Document

## 1. System Overview

docsmith turns source code or descriptions into engineering documents by
combining static analysis with a large language model.

## 2. Architecture

```mermaid
flowchart LR
    Input[Code or description] --> Analyzer
    Analyzer --> PromptBuilder
    PromptBuilder --> Provider[LLM provider]
    Provider --> Result[Generated document]
```

## 3. Modules

| Module | Responsibility |
|--------|----------------|
| Analyzer | Extracts structural metadata from source code |
| PromptBuilder | Assembles the system instruction and user payload |
| LLM provider | Talks to the configured model backend |
| DocGenerator | Orchestrates a request and stamps the result |

## 4. Data Flow

1. The caller submits a generation request.
2. Code input is truncated and analyzed.
3. The prompt is sent to the provider, optionally streaming.
4. The result receives an id, title and timestamp.

## 5. Design Decisions

- Providers share one interface so the orchestrator never branches on backend.
- Analysis failures degrade to empty metadata instead of failing the request.
""",
    "api": """# API Document

## 1. Overview

The service exposes JSON endpoints for code analysis and document generation.

## 2. Endpoints

### POST /parse-code

| Parameter | Type | Required | Description |
|-----------|------|----------|-------------|
| code | string | yes | Source code to analyze |
| file_name | string | yes | File name used for language detection |
| language | string | no | Explicit language override |

**Response**

```json
{"metadata": {"classes": [], "functions": []}, "summary": "## Code Analysis Summary"}
```

### POST /generate-doc

| Parameter | Type | Required | Description |
|-----------|------|----------|-------------|
| input_type | string | yes | `code` or `text` |
| doc_type | string | yes | `requirements`, `design`, `api` or `test` |
| content | string | yes | Code or description |
| stream | boolean | no | Stream the answer as server-sent events |

## 3. Error Codes

| Status | Meaning |
|--------|---------|
| 400 | Invalid request or missing configuration |
| 502 | The model provider failed |
""",
    "test": """# Test Document

## 1. Overview

This document covers functional tests for code analysis and document
generation.

## 2. Scope

- Structural analysis of JavaScript, TypeScript and Python
- Prompt assembly
- Provider error handling

## 3. Test Cases

| ID | Scenario | Preconditions | Steps | Expected Result |
|----|----------|---------------|-------|-----------------|
| TC-1 | Analyze a Python class | None | Submit a file with one class | One class with its methods is reported |
| TC-2 | Analyze invalid code | None | Submit unparsable text | Empty metadata, no error |
| TC-3 | Generate an API document | Provider configured | Submit code with doc type `api` | A Markdown document is returned |
| TC-4 | Provider rejects the key | Invalid key | Submit any request | A provider error is reported |

## 4. Boundary Conditions

- Code longer than the configured limit is truncated at a line boundary.
- Empty input produces a document request without structure analysis.

## 5. Error Handling

- Network failures surface as transport errors.
- Timeouts surface as timeout errors.
""",
}


def sample_document(doc_type: str) -> str:
    return SAMPLE_DOCUMENTS[doc_type]


__all__ = ["SAMPLE_DOCUMENTS", "sample_document"]
