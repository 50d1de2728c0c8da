"""参数校验。

nela-agi v0.1.0

各任务的参数约束以静态规则表描述，按参数声明顺序逐项检查：
- 普通任务遇到第一个违规即停止
- chat completion 的对话结构违规会全部收集后一起报告

数值约束拒绝 bool、字符串、None 和 NaN，类型不符与越界同等处理。
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Sequence

from .errors import NelaAGIError
from .types import BinaryPayload, ConversationTurn, Role

__all__ = [
    "AUDIO_MIME_TYPES",
    "AUDIO_RULE",
    "CHAT_COMPLETION_RULES",
    "IMAGE_GENERATION_RULES",
    "IMAGE_INPAINTING_RULES",
    "IMAGE_MIME_TYPES",
    "IMAGE_RULE",
    "IMAGE_TO_IMAGE_RULES",
    "MASK_IMAGE_RULE",
    "MUSIC_SEPARATION_RULES",
    "TEXT_TO_SPEECH_RULES",
    "ContentTypeIn",
    "IsBool",
    "Length",
    "OneOf",
    "Range",
    "Rule",
    "ValidationOutcome",
    "as_turn_dict",
    "check_rules",
    "validate_conversations",
]


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not math.isnan(value)


# =============================================================================
# 约束
# =============================================================================


@dataclass(frozen=True)
class Length:
    """字符串长度区间（闭区间）。"""
    min: int
    max: int

    def accepts(self, value: Any) -> bool:
        return isinstance(value, str) and self.min <= len(value) <= self.max


@dataclass(frozen=True)
class Range:
    """数值区间（闭区间）。"""
    min: float
    max: float
    integer: bool = False

    def accepts(self, value: Any) -> bool:
        if not _is_number(value):
            return False
        if self.integer and not isinstance(value, int):
            return False
        return self.min <= value <= self.max


@dataclass(frozen=True)
class OneOf:
    """枚举值。"""
    values: tuple[Any, ...]
    case_insensitive: bool = False

    def accepts(self, value: Any) -> bool:
        if isinstance(value, bool):
            return False
        if self.case_insensitive:
            return isinstance(value, str) and value.upper() in self.values
        return value in self.values


@dataclass(frozen=True)
class IsBool:
    """布尔值。"""

    def accepts(self, value: Any) -> bool:
        return isinstance(value, bool)


@dataclass(frozen=True)
class ContentTypeIn:
    """解析后的二进制输入的 MIME 类型。"""
    values: tuple[str, ...]

    def accepts(self, value: Any) -> bool:
        return isinstance(value, BinaryPayload) and value.content_type in self.values


@dataclass(frozen=True)
class Rule:
    """单个参数的校验规则。

    Attributes:
        field: 参数名
        constraint: 约束
        message: 违规时的错误信息
        optional: 为 True 时 None 视为合法（不传）
    """
    field: str
    constraint: Length | Range | OneOf | IsBool | ContentTypeIn
    message: str
    optional: bool = False

    def check(self, value: Any) -> bool:
        if value is None and self.optional:
            return True
        return self.constraint.accepts(value)


@dataclass
class ValidationOutcome:
    """校验结果，violations 为空即合法。"""
    violations: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.violations

    def raise_if_invalid(self, status_code: int = 422) -> None:
        """存在违规时抛出 NelaAGIError，多条信息以换行连接。"""
        if self.violations:
            raise NelaAGIError(status_code, "\n".join(self.violations))


def check_rules(
    rules: Iterable[Rule],
    values: Mapping[str, Any],
    fail_fast: bool = True,
) -> ValidationOutcome:
    """按规则顺序校验参数。"""
    outcome = ValidationOutcome()
    for rule in rules:
        if not rule.check(values.get(rule.field)):
            outcome.violations.append(rule.message)
            if fail_fast:
                break
    return outcome


# =============================================================================
# 规则表
# =============================================================================

IMAGE_MIME_TYPES = ("image/png", "image/jpeg")
AUDIO_MIME_TYPES = ("audio/mp3", "audio/wav", "audio/mpeg", "audio/wave")

ALLOWED_MAX_NEW_TOKENS = (128, 256, 512, 1024)
ALLOWED_IMAGE_FORMATS = ("PNG", "JPEG")
ALLOWED_SPEAKER_GENDERS = ("MALE", "FEMALE")
ALLOWED_SPLIT_MODES = ("ALL", "KARAOKE")

IMAGE_RULE = Rule("image", ContentTypeIn(IMAGE_MIME_TYPES), "Image format should be PNG or JPEG")
MASK_IMAGE_RULE = Rule(
    "mask_image", ContentTypeIn(IMAGE_MIME_TYPES), "Mask image format should be PNG or JPEG"
)
AUDIO_RULE = Rule("audio", ContentTypeIn(AUDIO_MIME_TYPES), "audio format should be MP3, MPEG or WAV")

TEXT_TO_SPEECH_RULES: tuple[Rule, ...] = (
    Rule("text", Length(2, 5000), "text length should be between 2 and 5000 characters"),
    Rule("speaker_id", Range(1, 110, integer=True), "speaker_id should be between 1 and 110",
         optional=True),
    Rule("speaker_gender", OneOf(ALLOWED_SPEAKER_GENDERS),
         'speaker_gender should be "MALE" or "FEMALE"', optional=True),
)

_PROMPT = Rule("prompt", Length(3, 275), "Prompt length should be between 3 and 275 characters")
_NEGATIVE_PROMPT = Rule(
    "negative_prompt", Length(3, 275),
    "Negative Prompt length should be between 3 and 275 characters", optional=True,
)
_WIDTH = Rule("width", Range(512, 1024), "Width should be between 512 and 1024 pixels")
_HEIGHT = Rule("height", Range(512, 1024), "Height should be between 512 and 1024 pixels")
_CROPS_X = Rule(
    "crops_coords_top_left_x", Range(0, 1024),
    "crops_coords_top_left_x value must be between 0 and 1024 pixels",
)
_CROPS_Y = Rule(
    "crops_coords_top_left_y", Range(0, 1024),
    "crops_coords_top_left_y value must be between 0 and 1024 pixels",
)
_SEED = Rule("seed", Range(0, 9999999999), "Seed should be between 0 and 9999999999 value")
_NUM_INFERENCE_STEPS = Rule(
    "num_inference_steps", Range(1, 75), "num_inference_steps should be between 1 and 75 value"
)
_STRENGTH = Rule("strength", Range(0.0, 1.0), "Strength should be between 0.0 and 1.0")
_GUIDANCE_SCALE = Rule(
    "guidance_scale", Range(0, 15), "guidance_scale should be between 0 and 15 value"
)
_IMAGE_FORMAT = Rule(
    "image_format", OneOf(ALLOWED_IMAGE_FORMATS),
    "image_format should be in 'PNG' and 'JPEG' image formats",
)

IMAGE_GENERATION_RULES: tuple[Rule, ...] = (
    _PROMPT, _NEGATIVE_PROMPT, _WIDTH, _HEIGHT, _CROPS_X, _CROPS_Y,
    _SEED, _NUM_INFERENCE_STEPS, _GUIDANCE_SCALE, _IMAGE_FORMAT,
)

# 二进制字段（image / mask_image）在解析时单独校验，不在表内
IMAGE_TO_IMAGE_RULES: tuple[Rule, ...] = (
    _PROMPT, _NEGATIVE_PROMPT, _CROPS_X, _CROPS_Y,
    _SEED, _NUM_INFERENCE_STEPS, _STRENGTH, _GUIDANCE_SCALE, _IMAGE_FORMAT,
)

IMAGE_INPAINTING_RULES: tuple[Rule, ...] = (
    _PROMPT, _NEGATIVE_PROMPT, _WIDTH, _HEIGHT, _CROPS_X, _CROPS_Y,
    _SEED, _NUM_INFERENCE_STEPS, _STRENGTH, _GUIDANCE_SCALE, _IMAGE_FORMAT,
)

MUSIC_SEPARATION_RULES: tuple[Rule, ...] = (
    Rule("split", OneOf(ALLOWED_SPLIT_MODES, case_insensitive=True),
         "split format should be 'ALL' or 'KARAOKE'"),
)

CHAT_COMPLETION_RULES: tuple[Rule, ...] = (
    Rule("max_new_tokens", OneOf(ALLOWED_MAX_NEW_TOKENS),
         "max_new_tokens values are 128, 256, 512, or 1024"),
    Rule("do_sample", IsBool(), "do_sample must be a boolean value"),
    Rule("temperature", Range(0.05, 1.0), "temperature must be a number between 0.05 and 1"),
    Rule("top_p", Range(0, 1), "top_p must be a number between 0 and 1"),
    Rule("top_k", Range(0, 100), "top_k value must be between 0 and 100"),
    Rule("repetition_penalty", Range(1.0, 2.0),
         "repetition_penalty value must be number between 1.0 and 2.0"),
)


# =============================================================================
# 对话结构
# =============================================================================

CONVERSATIONS_SHAPE_ERROR = (
    "conversations must be a list of objects with role and content properties"
)
ALLOWED_ROLES = tuple(role.value for role in Role)


def _is_turn(turn: Any) -> bool:
    if isinstance(turn, ConversationTurn):
        return True
    return isinstance(turn, Mapping) and "role" in turn and "content" in turn


def as_turn_dict(turn: ConversationTurn | Mapping[str, Any]) -> dict[str, Any]:
    """统一为 {"role": ..., "content": ...}，Role 枚举转为字符串。"""
    if isinstance(turn, ConversationTurn):
        return turn.to_dict()
    role = turn["role"]
    if isinstance(role, Role):
        role = role.value
    return {"role": role, "content": turn["content"]}


def validate_conversations(conversations: Any) -> ValidationOutcome:
    """校验对话列表的结构，收集全部违规。

    结构要求：
    - 列表不能为空
    - 下标 0 为 system，奇数下标为 user，大于 0 的偶数下标为 ai
    - 最后一项为 user
    - 每项 content 至少 2 个字符
    """
    if (
        not isinstance(conversations, Sequence)
        or isinstance(conversations, (str, bytes))
        or not all(_is_turn(turn) for turn in conversations)
    ):
        return ValidationOutcome([CONVERSATIONS_SHAPE_ERROR])

    errors: list[str] = []
    if not conversations:
        errors.append("conversations list cannot be empty.")

    last_index = len(conversations) - 1
    for index, turn in enumerate(as_turn_dict(t) for t in conversations):
        role, content = turn["role"], turn["content"]

        if role not in ALLOWED_ROLES:
            errors.append(f"Invalid Role Name: '{role}' in conversation index '{index}'.")

        if index == 0 and role != "system":
            errors.append(
                f"Invalid Role Position: System role needed to be in conversation index '{index}'."
            )

        if index % 2 != 0 and role != "user":
            errors.append(
                "Invalid Role Position: User role needed to be in odd position of "
                f"conversation index '{index}'."
            )

        if index % 2 == 0 and index != 0 and role != "ai":
            errors.append(
                "Invalid Role Position: AI role needed to be in even position of "
                f"conversation index '{index}'."
            )

        if index == last_index and role != "user":
            errors.append(
                "Invalid Role Position: User role needed to be in end of "
                f"conversation index '{index}'."
            )

        if not isinstance(content, str) or len(content) < 2:
            errors.append(
                f"Invalid Content: Content of conversation index '{index}' "
                "must be at least 2 characters long."
            )

    return ValidationOutcome(errors)
