"""Pytest configuration and shared fixtures for flowsmith tests."""

import pytest

from flowsmith import DiagramEditor


@pytest.fixture
def flowchart_text():
    """Flowchart with shapes, a labelled edge and trailing style directives."""
    return "\n".join(
        [
            "flowchart TD",
            '    A["Start"] --> B{Decide}',
            "    B -->|yes| C(Done)",
            "    B -.-> D",
            "    classDef hot fill:#f96",
            "    style C fill:#9f6",
        ]
    )


@pytest.fixture
def grouped_flowchart_text():
    """Flowchart with one closed group holding an edge line."""
    return "\n".join(
        [
            "flowchart LR",
            "    subgraph g1 [Group]",
            "        A --> B",
            "    end",
            "    B --> C",
        ]
    )


@pytest.fixture
def cpm_gantt_text():
    """Diamond-shaped schedule: A feeds B and C, both feed D."""
    return "\n".join(
        [
            "gantt",
            "    title Plan",
            "    dateFormat YYYY-MM-DD",
            "    section Build",
            "    A : 2026-01-01, 2d",
            "    B : after A, 3d",
            "    C : after A, 1d",
            "    D : after B C, 1d",
        ]
    )


@pytest.fixture
def cyclic_gantt_text():
    """Two tasks waiting on each other."""
    return "\n".join(
        [
            "gantt",
            "    dateFormat YYYY-MM-DD",
            "    X : after Y, 1d",
            "    Y : after X, 1d",
        ]
    )


@pytest.fixture
def project_gantt_text():
    """Gantt with ids, status flags, sections and metadata comments."""
    return "\n".join(
        [
            "gantt",
            "    dateFormat YYYY-MM-DD",
            "    section Design",
            "    Spec :done, spec, 2026-03-02, 5d",
            "    %% assignee: alice",
            "    %% progress: 100",
            "    Review :active, rev, after spec, 2d",
            "    section Build",
            "    Code :crit, code, after rev, 10d",
            "    %% assignee: bob",
            "    Launch :milestone, launch, after code, 0d",
        ]
    )


@pytest.fixture
def class_text():
    """Class diagram with a block class, an alias and cardinalities."""
    return "\n".join(
        [
            "classDiagram",
            "    class Animal {",
            "        <<abstract>>",
            "        +String name",
            "        +eat() void",
            "    }",
            '    class Duck["Mallard Duck"]',
            "    Animal <|-- Duck : inherits",
            '    Duck "1" --> "*" Egg : lays',
            "    Egg : +int size",
        ]
    )


@pytest.fixture
def er_text():
    """ER diagram with two relationships and one attribute block."""
    return "\n".join(
        [
            "erDiagram",
            "    CUSTOMER ||--o{ ORDER : places",
            '    ORDER ||--|{ LINE-ITEM : "contains items"',
            "    CUSTOMER {",
            "        string name",
            '        int id PK "primary key"',
            "    }",
        ]
    )


@pytest.fixture
def state_text():
    """State diagram with an alias, a composite state and a choice."""
    return "\n".join(
        [
            "stateDiagram-v2",
            "    [*] --> Idle",
            '    state "Waiting for input" as Idle',
            "    Idle --> Running : start",
            "    state Running {",
            "        [*] --> Working",
            "        Working --> [*]",
            "    }",
            "    state Check <<choice>>",
            "    Running --> Check",
            "    Check --> [*]",
            "    Idle : resting",
        ]
    )


@pytest.fixture
def sequence_text():
    """Sequence diagram with declared and implicit participants."""
    return "\n".join(
        [
            "sequenceDiagram",
            "    participant A as Alice",
            "    actor B as Bob",
            "    A->>+B: Hello",
            "    B-->>-A: Hi",
            "    A-)C: async",
        ]
    )


@pytest.fixture
def editor():
    """Default DiagramEditor instance."""
    return DiagramEditor()


@pytest.fixture
def debug_editor():
    """DiagramEditor with edit tracing enabled."""
    return DiagramEditor(debug=True)
