"""Prompts for the article analysis request."""

from miaobi.config import Provider

# =============================================================================
# System prompt (OpenAI-compatible providers only)
# =============================================================================

JSON_SYSTEM_PROMPT = (
    "You are a helpful writing assistant. You must output only valid JSON."
)

# =============================================================================
# JSON structure hint
# =============================================================================

# Providers without schema-constrained output get the shape spelled out.
JSON_STRUCTURE_HINT = '''
Please output a valid JSON object matching this structure exactly:
{
  "scores": { "total": number, "readability": number, "logic": number, "emotion": number, "creativity": number },
  "summary": string,
  "toneAnalysis": string,
  "keywords": string[],
  "corrections": [ { "original": string, "suggestion": string, "reason": string, "type": "grammar"|"typo"|"style"|"punctuation", "location_snippet": string } ],
  "titleAnalysis": { "score": number, "viralPotential": "High"|"Medium"|"Low", "critique": string, "suggestions": string[], "examples": string[] },
  "structure": { "name": string, "type": "root", "children": [ { "name": string, "type": "main_point"|"sub_point"|"evidence"|"conclusion", "description": string, "children": [] } ] },
  "polishedContent": string
}
'''

SCHEMA_REMINDER = "请务必以 JSON 格式返回结果，严查错别字和语法问题。"

# =============================================================================
# Editorial brief
# =============================================================================

ANALYSIS_PROMPT_TEMPLATE = '''
作为一位资深的中文写作主编和新媒体运营专家，请对以下文章进行深度分析和优化。

文章标题: {title}
文章正文:
{content}

请完成以下任务：
1. 评分：从总分、可读性、逻辑性、情感共鸣、创意度五个维度打分（0-100）。
2. 摘要：生成一段简短的摘要。
3. 关键词：提取 SEO 关键词。
4. 纠错与优化：找出错别字、语病、标点错误以及可以润色的地方。
5. 标题分析：分析标题吸引力，给出优化建议和替代标题。
6. 逻辑结构分析：请生成一个树状结构来表示文章的逻辑流。根节点是文章核心主题，第一层子节点是主要论点或章节，第二层是支撑论据或细节。
7. 润色全文：提供一份修改后的全文版本。
8. 语气分析：分析当前文章的语调。

{output_instruction}
'''

MISSING_TITLE = "未提供标题"


def build_analysis_prompt(title: str, content: str, provider: Provider) -> str:
    """Build the user prompt for an analysis request.

    Args:
        title: Article title (may be empty)
        content: Article body
        provider: Target provider; decides how the JSON shape is requested

    Returns:
        The complete prompt text
    """
    if provider == Provider.OPENAI:
        output_instruction = JSON_STRUCTURE_HINT
    else:
        output_instruction = SCHEMA_REMINDER

    return ANALYSIS_PROMPT_TEMPLATE.format(
        title=title.strip() or MISSING_TITLE,
        content=content,
        output_instruction=output_instruction,
    )
