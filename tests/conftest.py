"""Pytest configuration and shared fixtures."""

import asyncio
import json
import re
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import pytest
from fastapi.testclient import TestClient

from judgment_ai.core.chat_client import ModelInvoker, ModelOptions, ModelResponse
from judgment_ai.main import app
from judgment_ai.services.document.text_processor import Document

_TASK_LINE = re.compile(r"^Task: (\w+)", re.MULTILINE)
_STRATEGY_LINE = re.compile(r"^Strategy: (\w+)", re.MULTILINE)

Script = Union[str, BaseException, Callable[[str], str]]


class ScriptedInvoker(ModelInvoker):
    """In-memory model that answers by the prompt's "Task:" line.

    Scripts are keyed by task name, or by "disputes:<strategy>" for dispute
    prompts. A script is the raw response text, an exception to raise, or a
    callable receiving the user prompt.
    """

    def __init__(self, scripts: Optional[Dict[str, Script]] = None, delay: float = 0.0, model: str = "scripted-model"):
        self.scripts = dict(scripts or {})
        self.delay = delay
        self.model = model
        self.calls: List[Tuple[str, str, ModelOptions]] = []
        self.active = 0
        self.max_active = 0

    def script_key(self, user_prompt: str) -> str:
        task_match = _TASK_LINE.search(user_prompt)
        task = task_match.group(1) if task_match else ""
        strategy_match = _STRATEGY_LINE.search(user_prompt)
        if strategy_match:
            return f"{task}:{strategy_match.group(1)}"
        return task

    @property
    def called_keys(self) -> List[str]:
        return [self.script_key(user_prompt) for _, user_prompt, _ in self.calls]

    async def invoke_model(self, system_prompt: str, user_prompt: str, options: ModelOptions) -> ModelResponse:
        self.calls.append((system_prompt, user_prompt, options))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            script = self.scripts.get(self.script_key(user_prompt), "{}")
            if isinstance(script, BaseException):
                raise script
            content = script(user_prompt) if callable(script) else script
            return ModelResponse(content=content, model=self.model)
        finally:
            self.active -= 1


SAMPLE_JUDGMENT = """北京市朝阳区人民法院
民 事 判 决 书
(2023)京0105民初12345号

原告：张三，男，1980年1月1日出生，住北京市朝阳区。
委托诉讼代理人：李四，北京某某律师事务所律师。
被告：北京某某科技有限公司，住所地北京市海淀区。
法定代表人：王五，总经理。
原告张三向本院提出诉讼请求：1.判令被告支付货款50000元；2.本案诉讼费由被告承担。
被告辩称，货物存在质量问题，不同意支付货款。
本院立案后，依法适用简易程序，公开开庭进行了审理。本案现已审理终结。
经审理查明：2023年1月10日，原告与被告签订《买卖合同》，约定原告向被告供应办公设备，总价50000元。
2023年2月1日，原告交付全部货物，被告签收。
第1页
被告至今未支付货款。
上述事实，有买卖合同、送货单及当事人陈述等证据在案佐证。
本院认为，原告与被告之间的买卖合同关系合法有效。原告已履行交货义务，被告应当支付货款。
依照《中华人民共和国民法典》第五百七十九条之规定，判决如下：
一、被告北京某某科技有限公司于本判决生效之日起十日内支付原告张三货款50000元。
案件受理费525元，由被告负担。
审判员  赵六
二〇二三年六月一日
书记员  孙七
"""


def fenced(payload: Any) -> str:
    """Wrap a payload the way chat models usually answer."""
    return "以下是提取结果：\n```json\n" + json.dumps(payload, ensure_ascii=False) + "\n```"


BASIC_INFO_PAYLOAD = {
    "caseNumber": "(2023)京0105民初12345号",
    "court": "北京市朝阳区人民法院",
    "judgeDate": "2023-06-01",
    "caseType": "民事",
    "judge": ["赵六"],
    "clerk": "孙七",
    "parties": {
        "plaintiff": [{"name": "张三", "type": "自然人", "legalRepresentative": "", "attorney": ["李四"]}],
        "defendant": [{"name": "北京某某科技有限公司", "type": "法人", "legalRepresentative": "王五", "attorney": []}],
        "thirdParty": [],
    },
}

FACTS_PAYLOAD = {
    "summary": "原告向被告供应办公设备后，被告未支付货款50000元。",
    "timeline": [
        {
            "date": "2023-01-10",
            "event": "原告与被告签订《买卖合同》，约定总价50000元",
            "importance": "critical",
            "actors": ["张三", "北京某某科技有限公司"],
            "location": "",
            "relatedEvidence": ["买卖合同"],
            "causalRelation": "确立双方权利义务",
        },
        {
            "date": "2023-02-01",
            "event": "原告交付全部货物，被告签收",
            "importance": "important",
            "actors": ["张三"],
            "location": "",
            "relatedEvidence": ["送货单"],
            "causalRelation": "",
        },
    ],
    "keyFacts": ["被告签收货物", "被告未付款"],
    "disputedFacts": ["货物是否存在质量问题"],
    "undisputedFacts": ["双方签订买卖合同"],
}

EVIDENCE_PAYLOAD = {
    "summary": "原告提交买卖合同、送货单",
    "items": [
        {
            "id": "evidence-1",
            "name": "买卖合同",
            "type": "书证",
            "submittedBy": "原告",
            "description": "约定总价50000元",
            "credibilityScore": 90,
            "relevanceScore": 95,
            "accepted": True,
            "courtOpinion": "予以采信",
            "relatedFacts": ["双方签订买卖合同"],
        }
    ],
    "chainAnalysis": {"complete": True, "missingLinks": [], "strength": "strong", "analysis": "证据链完整"},
    "crossExamination": "被告对真实性无异议",
}

REASONING_PAYLOAD = {
    "summary": "买卖合同有效，被告应支付货款",
    "legalBasis": [
        {
            "law": "中华人民共和国民法典",
            "article": "第五百七十九条",
            "clause": "",
            "content": "当事人一方未支付价款的，对方可以请求其支付",
            "source": "判决书原文",
            "application": "被告未支付货款",
            "interpretation": "",
        }
    ],
    "logicChain": [
        {
            "premise": "未支付价款的，对方可以请求支付",
            "inference": "被告签收货物后未付款",
            "conclusion": "被告应支付货款50000元",
            "supportingEvidence": ["送货单"],
        }
    ],
    "keyArguments": ["被告未举证证明质量问题"],
    "judgment": "被告于判决生效之日起十日内支付原告货款50000元",
    "dissenting": "",
}


@pytest.fixture
def test_client() -> TestClient:
    """Create FastAPI test client.

    Returns:
        TestClient: FastAPI test client instance
    """
    return TestClient(app)


@pytest.fixture(autouse=True)
def clear_dependency_overrides():
    """Ensure FastAPI dependency overrides are reset between tests."""
    app.dependency_overrides = {}
    yield
    app.dependency_overrides = {}


@pytest.fixture
def sample_judgment() -> str:
    return SAMPLE_JUDGMENT


@pytest.fixture
def sample_document() -> Document:
    return Document.from_text(SAMPLE_JUDGMENT)


@pytest.fixture
def full_scripts() -> Dict[str, str]:
    """Well-formed responses for all four extraction tasks."""
    return {
        "basicInfo": fenced(BASIC_INFO_PAYLOAD),
        "facts": fenced(FACTS_PAYLOAD),
        "evidence": json.dumps(EVIDENCE_PAYLOAD, ensure_ascii=False),
        "reasoning": fenced(REASONING_PAYLOAD),
    }


@pytest.fixture
def scripted_invoker(full_scripts) -> ScriptedInvoker:
    return ScriptedInvoker(full_scripts)
