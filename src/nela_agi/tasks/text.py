"""文本任务。

nela-agi v0.1.0
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping, Sequence

from ..assembler import json_request
from ..config import Endpoint
from ..types import ApiResponse, ConversationTurn
from ..validation import (
    CHAT_COMPLETION_RULES,
    as_turn_dict,
    check_rules,
    validate_conversations,
)
from .base import Task, TaskGroup

if TYPE_CHECKING:
    from ..client import NelaAGI

__all__ = ["ChatCompletion", "Text"]


class ChatCompletion(Task):
    """对话补全。"""

    endpoint = Endpoint.CHAT_COMPLETION

    async def fetch(
        self,
        conversations: Sequence[ConversationTurn | Mapping[str, Any]],
        max_new_tokens: int = 512,
        do_sample: bool = True,
        temperature: float = 0.5,
        top_p: float = 0.8,
        top_k: int = 50,
        repetition_penalty: float = 1.0,
    ) -> ApiResponse:
        """根据对话生成下一轮 ai 回复。

        Args:
            conversations: 对话列表。下标 0 为 system，奇数下标为 user，
                大于 0 的偶数下标为 ai，最后一项必须是 user，
                每项 content 至少 2 个字符
            max_new_tokens: 最大生成 token 数（128/256/512/1024）
            do_sample: 是否采样
            temperature: 随机性（0.05-1.0）
            top_p: nucleus sampling（0-1）
            top_k: top-k sampling（0-100）
            repetition_penalty: 重复惩罚（1.0-2.0）

        Returns:
            ApiResponse，data 额外包含 input_token_length、output_token_length、
            throughput、latency

        Raises:
            NelaAGIError: 参数校验失败（422）或请求失败
        """
        # 对话结构违规一次性全部报告
        validate_conversations(conversations).raise_if_invalid()

        params = {
            "max_new_tokens": max_new_tokens,
            "do_sample": do_sample,
            "temperature": temperature,
            "top_p": top_p,
            "top_k": top_k,
            "repetition_penalty": repetition_penalty,
        }
        check_rules(CHAT_COMPLETION_RULES, params).raise_if_invalid()

        request = json_request(self.url, {
            "conversations": [as_turn_dict(turn) for turn in conversations],
            **params,
        })
        return await self._send(request)


class Text(TaskGroup):
    """文本任务集合。"""

    def __init__(self, client: NelaAGI) -> None:
        super().__init__(client)
        self.chat_completion = ChatCompletion(client)
