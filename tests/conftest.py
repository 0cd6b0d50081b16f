from pathlib import Path
import sys

import pytest

# Ensure the repository root is importable without installation.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


SAMPLE_PAGE = """\
---
title: Useful Links
layout: useful-links
url: /useful-links/
summary: Links I keep coming back to.
---

title: Useful Links
layout: useful-links
url: /useful-links/
summary: Links I keep coming back to.

## AI & LLM Platforms

- [OpenAI Platform](https://platform.openai.com/docs)
- [Hugging Face](https://huggingface.co/)

## Messaging

- [RabbitMQ Tutorials](https://www.rabbitmq.com/tutorials)
- Redis docs: https://redis.io/docs/
- https://stripe.com/docs

## Payments

- [Stripe Docs](https://stripe.com/docs/)
- [RabbitMQ](https://www.rabbitmq.com/tutorials#intro)
"""


@pytest.fixture
def sample_text():
    return SAMPLE_PAGE


@pytest.fixture
def sample_file(tmp_path):
    path = tmp_path / "useful-links.md"
    path.write_text(SAMPLE_PAGE, encoding="utf-8")
    return path
