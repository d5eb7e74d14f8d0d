# Prompt builders for judgment extraction and dispute analysis.
# - Every prompt carries a "Task: <name>" line so responses can be traced
#   back to the task that requested them.
# - The JSON output format is rendered from the canonical schema, so the
#   shape the model is asked for never drifts from what the normalizer
#   enforces.
# - Prompts are plain functions of (text, task); no model state lives here.

import json
from typing import Any, Callable, Dict

from judgment_ai.schemas.canonical import FieldKind, FieldSpec
from judgment_ai.schemas.legal_schemas import (
    BASIC_INFO_SCHEMA,
    CLAIM_BASIS_MAPPING_SCHEMA,
    DISPUTE_SCHEMA,
    EVIDENCE_SCHEMA,
    FACTS_SCHEMA,
    REASONING_SCHEMA,
)

TRUNCATION_MARKER = "\n……（以下内容已截断）"

SYSTEM_PROMPT = (
    "你是资深法学教授和司法实务专家，正在为法学院学生准备教学案例材料。"
    "你只输出严格的JSON，不添加任何解释性文字；判决书未提及的内容保持为空字符串或空数组，"
    "绝不臆测。"
)

DISPUTE_SYSTEM_PROMPT = "你是一个专业的法律文书分析助手，擅长识别和分析案件中的争议焦点。只输出严格的JSON。"


def schema_skeleton(spec: FieldSpec) -> Any:
    """Render a schema as an example JSON value for the output-format block."""
    if spec.kind == FieldKind.OBJECT:
        return {member.name: schema_skeleton(member) for member in spec.fields}
    if spec.kind == FieldKind.ARRAY:
        return [schema_skeleton(spec.item)]
    if spec.kind == FieldKind.ENUM:
        return "|".join(spec.choices)
    if spec.kind == FieldKind.NUMBER:
        return spec.make_default()
    if spec.kind == FieldKind.BOOLEAN:
        return spec.default
    return spec.description or ""


def render_output_format(spec: FieldSpec) -> str:
    return json.dumps(schema_skeleton(spec), ensure_ascii=False, indent=2)


def truncate(text: str, max_chars: int) -> str:
    """Cut `text` to `max_chars` characters, marking the cut."""
    if max_chars <= 0 or len(text) <= max_chars:
        return text
    return text[:max_chars] + TRUNCATION_MARKER


def build_basic_info_prompt(text: str, max_chars: int) -> str:
    return f"""Task: basicInfo

# 核心任务
从判决书开头部分提取案件基本信息：案号、法院、判决日期、案件类型、审判人员、书记员和全部当事人。

# 提取要求
1. 案号保持原文格式，例如"(2024)京01民初123号"
2. 判决日期统一为YYYY-MM-DD格式
3. 当事人分为原告、被告、第三人；上诉案件中上诉人、被上诉人按一审地位归类
4. 当事人类型只能是：自然人、法人、其他组织

# 输出格式
{render_output_format(BASIC_INFO_SCHEMA)}

# 判决书内容
{truncate(text, max_chars)}"""


def build_facts_prompt(text: str, max_chars: int) -> str:
    return f"""Task: facts

# 核心任务
从判决书的事实认定部分，构建完整且准确的时间线和事实体系。

# 提取要求
1. 判决书提到的每一个时间节点、每一个事件都不能遗漏，按时间顺序排列
2. 忠实于原文，不臆测、不添加
3. 每个事件写明主体、行为和结果
4. 重要性分级：critical（直接影响判决结果）、important（影响案件理解）、normal（背景或程序性事件）
5. 区分双方争议的事实与无争议的事实

# 输出格式
{render_output_format(FACTS_SCHEMA)}

# 事实认定部分
{truncate(text, max_chars)}"""


def build_evidence_prompt(text: str, max_chars: int) -> str:
    return f"""Task: evidence

# 核心任务
从判决书中提取全部证据及法院的质证、认证意见，并评估证据链。

# 提取要求
1. 每项证据单独列出，写明提交方、证据类型和证明内容
2. credibilityScore与relevanceScore取值0-100
3. accepted表示法院是否采信
4. chainAnalysis评估证据链是否完整、缺失哪些环节、整体强度（strong/moderate/weak）

# 输出格式
{render_output_format(EVIDENCE_SCHEMA)}

# 证据相关部分
{truncate(text, max_chars)}"""


def build_reasoning_prompt(text: str, max_chars: int) -> str:
    return f"""Task: reasoning

# 核心任务
从"本院认为"部分提取法院的裁判说理：法律依据、三段论推理链、关键论点和判决主文。

# 提取要求
1. legalBasis逐条列出引用的法律条文；判决书原文引用的标注source为"判决书原文"
2. logicChain每一步写明大前提（法律规则）、小前提（事实涵摄）和结论
3. judgment填写判决主文的核心内容

# 输出格式
{render_output_format(REASONING_SCHEMA)}

# 本院认为部分
{truncate(text, max_chars)}"""


_EXTRACTION_BUILDERS: Dict[str, Callable[[str, int], str]] = {
    "basicInfo": build_basic_info_prompt,
    "facts": build_facts_prompt,
    "evidence": build_evidence_prompt,
    "reasoning": build_reasoning_prompt,
}


def build_extraction_prompt(section_text: str, task: str, max_chars: int) -> str:
    """Build the user prompt for one extraction task.

    Args:
        section_text: Located section text
        task: Task name (basicInfo, facts, evidence, reasoning)
        max_chars: Character budget for the embedded text

    Returns:
        Prompt string

    Raises:
        KeyError: If the task is unknown
    """
    return _EXTRACTION_BUILDERS[str(task)](section_text, max_chars)


_DISPUTE_FOCUS = {
    "full_text": "请通读整份判决书，识别所有主要争议焦点，包括事实争议和法律适用争议。",
    "focused": "以下内容摘自判决书的诉辩意见和本院认为部分，请围绕双方主张的分歧识别争议焦点。",
}


def build_dispute_prompt(text: str, strategy: str, max_chars: int = 0) -> str:
    """Build the dispute-focus prompt for one prompting strategy.

    Args:
        text: Judgment text or the strategy's excerpt of it
        strategy: "full_text" or "focused"
        max_chars: Character budget, 0 for no limit

    Returns:
        Prompt string
    """
    output_format = json.dumps(
        {
            "disputes": [schema_skeleton(DISPUTE_SCHEMA)],
            "claimBasisMappings": [schema_skeleton(CLAIM_BASIS_MAPPING_SCHEMA)],
            "metadata": {"confidence": 0.5, "disputeCount": 1},
        },
        ensure_ascii=False,
        indent=2,
    )
    return f"""Task: disputes
Strategy: {strategy}

## 分析任务
{_DISPUTE_FOCUS[strategy]}

## 分析要求
1. 分析每个争议的重要性级别（critical/major/minor/informational）
2. 说明争议类别（fact/law/procedure/evidence/other）和相关证据
3. 评估争议的复杂程度并给出教学指导说明
4. 关联相关的请求权基础
5. confidence取值0-1，表示该争议焦点识别的把握程度

## 输出格式
{output_format}

## 案件文书
{truncate(text, max_chars)}"""
