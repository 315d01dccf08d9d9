import json
import logging
import os
from pathlib import Path

from view_state import ViewConfig


class Settings:
    def __init__(self, config_dir=None):
        # 配置目录，只读，不会自动创建
        self.config_dir = config_dir or os.path.join(str(Path.home()), ".blamewalk")
        self.config_file = os.path.join(self.config_dir, "settings.json")

        # 默认设置
        self.settings = {
            "font_family": "Courier New",  # 默认字体
            "font_size": 12,  # 默认字体大小
            "annotation_width": 320,  # 注释栏宽度
            "scroll_margin": 3,  # 光标与视口边缘保持的行数
            "status_timeout_ms": 3000,  # 状态消息自动消失的时间
            "show_legend": False,  # 是否默认显示 commit 图例
        }

        self.load_settings()

    def load_settings(self):
        """加载设置"""
        if not os.path.exists(self.config_file):
            return
        try:
            with open(self.config_file, "r", encoding="utf-8") as f:
                saved_settings = json.load(f)
        except (OSError, ValueError) as e:
            logging.warning("加载设置失败：%s", e)
            return
        if isinstance(saved_settings, dict):
            self.settings.update(saved_settings)

    def get_font_family(self):
        """获取字体设置"""
        return self.settings.get("font_family", "Courier New")

    def get_font_size(self):
        """获取字体大小设置"""
        return self.settings.get("font_size", 12)

    def get_annotation_width(self):
        return self.settings.get("annotation_width", 320)

    def get_scroll_margin(self):
        return self.settings.get("scroll_margin", 3)

    def get_status_timeout(self):
        """获取状态消息显示时长（毫秒）"""
        return self.settings.get("status_timeout_ms", 3000)

    def get_show_legend(self):
        return bool(self.settings.get("show_legend", False))

    def view_config(self) -> ViewConfig:
        return ViewConfig(margin=int(self.get_scroll_margin()))


# commit 新旧渐变的两端：最新的 commit 用深色，最老的用白色
BLAME_DARK_ANCHOR = (192, 203, 229)  # light blue
BLAME_LIGHT_ANCHOR = (255, 255, 255)  # white
UNCOMMITTED_COLOR = (255, 236, 179)  # light yellow

CURSOR_LINE_COLOR = "#fff3b0"
SEARCH_MATCH_COLOR = "#ADD8E6"
CURRENT_MATCH_COLOR = "#7fb3e6"

# 创建全局settings实例
settings = Settings()
