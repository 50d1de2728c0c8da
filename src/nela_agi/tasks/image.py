"""图像任务。

nela-agi v0.1.0

- image_generation: 文生图（JSON）
- image_to_image: 图生图（multipart）
- image_inpainting: 局部重绘（multipart）

image / mask_image 接受 URL 字符串、BinaryPayload、bytes 或本地文件。
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..assembler import json_request, multipart_request
from ..config import Endpoint
from ..types import ApiResponse
from ..validation import (
    IMAGE_GENERATION_RULES,
    IMAGE_INPAINTING_RULES,
    IMAGE_RULE,
    IMAGE_TO_IMAGE_RULES,
    MASK_IMAGE_RULE,
    check_rules,
)
from .base import Task, TaskGroup

if TYPE_CHECKING:
    from ..client import NelaAGI

__all__ = ["Image", "ImageGeneration", "ImageInpainting", "ImageToImage"]


class ImageGeneration(Task):
    """文生图。"""

    endpoint = Endpoint.IMAGE_GENERATION

    async def fetch(
        self,
        prompt: str,
        negative_prompt: str | None = None,
        width: int = 1024,
        height: int = 1024,
        crops_coords_top_left_x: int = 0,
        crops_coords_top_left_y: int = 0,
        seed: int = 0,
        num_inference_steps: int = 25,
        guidance_scale: float = 5.0,
        image_format: str = "JPEG",
    ) -> ApiResponse:
        """根据提示词生成图像。

        Args:
            prompt: 提示词（3-275 字符）
            negative_prompt: 反向提示词（可选，3-275 字符）
            width: 宽度（512-1024 px）
            height: 高度（512-1024 px）
            crops_coords_top_left_x: 裁剪区域左上角 x（0-1024 px）
            crops_coords_top_left_y: 裁剪区域左上角 y（0-1024 px）
            seed: 随机种子（0-9999999999）
            num_inference_steps: 推理步数（1-75）
            guidance_scale: 提示词引导强度（0-15）
            image_format: 输出格式（PNG/JPEG）

        Returns:
            ApiResponse，output 为 image_base64
        """
        fields = {
            "prompt": prompt,
            "negative_prompt": negative_prompt,
            "width": width,
            "height": height,
            "crops_coords_top_left_x": crops_coords_top_left_x,
            "crops_coords_top_left_y": crops_coords_top_left_y,
            "seed": seed,
            "num_inference_steps": num_inference_steps,
            "guidance_scale": guidance_scale,
            "image_format": image_format,
        }
        check_rules(IMAGE_GENERATION_RULES, fields).raise_if_invalid()
        return await self._send(json_request(self.url, fields))


class ImageToImage(Task):
    """图生图。"""

    endpoint = Endpoint.IMAGE_TO_IMAGE

    async def fetch(
        self,
        image: Any,
        prompt: str,
        negative_prompt: str | None = None,
        crops_coords_top_left_x: int = 0,
        crops_coords_top_left_y: int = 0,
        seed: int = 0,
        num_inference_steps: int = 25,
        strength: float = 0.5,
        guidance_scale: float = 5.0,
        image_format: str = "JPEG",
    ) -> ApiResponse:
        """以输入图像为起点，按提示词变换。

        Args:
            image: 输入图像（PNG/JPEG）
            strength: 变换强度（0.0-1.0）

        其余参数同 ImageGeneration.fetch()。输出尺寸由输入图像决定。
        """
        image_payload = await self._resolve(image, IMAGE_RULE)

        fields = {
            "prompt": prompt,
            "negative_prompt": negative_prompt,
            "crops_coords_top_left_x": crops_coords_top_left_x,
            "crops_coords_top_left_y": crops_coords_top_left_y,
            "seed": seed,
            "num_inference_steps": num_inference_steps,
            "strength": strength,
            "guidance_scale": guidance_scale,
            "image_format": image_format,
        }
        check_rules(IMAGE_TO_IMAGE_RULES, fields).raise_if_invalid()

        request = multipart_request(self.url, [("image", image_payload), *fields.items()])
        return await self._send(request)


class ImageInpainting(Task):
    """局部重绘。"""

    endpoint = Endpoint.IMAGE_INPAINTING

    async def fetch(
        self,
        image: Any,
        mask_image: Any,
        prompt: str,
        negative_prompt: str | None = None,
        width: int = 1024,
        height: int = 1024,
        crops_coords_top_left_x: int = 0,
        crops_coords_top_left_y: int = 0,
        seed: int = 0,
        num_inference_steps: int = 25,
        strength: float = 0.5,
        guidance_scale: float = 5.0,
        image_format: str = "JPEG",
    ) -> ApiResponse:
        """按蒙版重绘图像中的指定区域。

        Args:
            image: 原图（PNG/JPEG）
            mask_image: 蒙版图（PNG/JPEG）
            strength: 重绘强度（0.0-1.0）

        其余参数同 ImageGeneration.fetch()。
        """
        image_payload = await self._resolve(image, IMAGE_RULE)
        mask_payload = await self._resolve(mask_image, MASK_IMAGE_RULE)

        fields = {
            "prompt": prompt,
            "negative_prompt": negative_prompt,
            "width": width,
            "height": height,
            "crops_coords_top_left_x": crops_coords_top_left_x,
            "crops_coords_top_left_y": crops_coords_top_left_y,
            "seed": seed,
            "num_inference_steps": num_inference_steps,
            "strength": strength,
            "guidance_scale": guidance_scale,
            "image_format": image_format,
        }
        check_rules(IMAGE_INPAINTING_RULES, fields).raise_if_invalid()

        request = multipart_request(self.url, [
            ("image", image_payload),
            ("mask_image", mask_payload),
            *fields.items(),
        ])
        return await self._send(request)


class Image(TaskGroup):
    """图像任务集合。"""

    def __init__(self, client: NelaAGI) -> None:
        super().__init__(client)
        self.image_generation = ImageGeneration(client)
        self.image_to_image = ImageToImage(client)
        self.image_inpainting = ImageInpainting(client)
