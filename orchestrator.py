# orchestrator.py
"""
[V5.0] 业务逻辑编排器
- 按项目聚合 Git 统计 (主仓库 + 子模块)，多项目时合并
- 文本报告 / JSON 输出
- AI 流式生成：后台线程生产事件，主线程消费 StreamChannel 并实时打印
- 报告落盘与浏览器打开
"""
import json
import logging
import sys
import threading
import uuid
from datetime import datetime
from typing import List, Optional

import aggregator
import git_utils
import report_builder
import utils
from ai_summarizer import AIService
from context import RunContext
from exceptions import LLMStreamError
from llm.channel import StreamChannel
from models import GitStats, Report, StreamChunk
from prompt_builder import build_prompt, build_prompt_from_stats

logger = logging.getLogger(__name__)


class ReportOrchestrator:
    """
    负责执行报告生成的核心业务逻辑。
    """

    def __init__(self, context: RunContext):
        self.context = context
        self.global_config = context.global_config
        logger.info("✅ ReportOrchestrator 已初始化")

    # --- 数据 ---

    def collect_stats(self) -> GitStats:
        ctx = self.context
        stats_list: List[GitStats] = []
        for target in ctx.projects:
            logger.info(f"📂 统计项目 '{target.name}': {target.repo_path}")
            stats = aggregator.get_git_stats(
                target.repo_path,
                ctx.since,
                ctx.until,
                target.authors,
                target.submodules,
            )
            for item in stats.diagnostics:
                logger.warning(f"⚠️ [{target.name}] 已跳过: {item}")
            stats_list.append(stats)

        if len(stats_list) == 1:
            return stats_list[0]
        return aggregator.merge_project_stats(stats_list, ctx.since, ctx.until)

    def print_full_log(self):
        ctx = self.context
        for target in ctx.projects:
            commits = aggregator.get_git_log(
                target.repo_path, ctx.since, ctx.until, target.authors, target.submodules
            )
            print(f"\n===== {target.name} ({len(commits)} 个提交) =====")
            for commit in commits:
                print(f"{commit.short_hash} {commit.date} {commit.author}: {commit.message}")
                for file in commit.files:
                    print(f"    {file.status}\t{file.path}")

    # --- AI ---

    def _create_ai_service(self) -> Optional[AIService]:
        if self.context.no_ai:
            return None
        try:
            return AIService(self.context)
        except (ValueError, ImportError) as e:
            logger.error(f"❌ AI 服务初始化失败: {e}")
            logger.error("   将以 --no-ai 模式继续...")
            self.context.no_ai = True
            return None

    def stream_ai_report(self, ai_service: AIService, prompt: str) -> Optional[str]:
        """
        后台线程执行流式请求，当前线程按顺序消费通道事件直到终止事件。
        成功返回完整文本；失败返回 None (错误已记录)。
        """
        channel: StreamChannel = ai_service.new_channel()
        result: dict = {}

        def worker():
            try:
                result["content"] = ai_service.stream_report(prompt, channel)
            except LLMStreamError as e:
                result["error"] = e
            except Exception as e:
                logger.error(f"❌ LLM 流式请求发生未知错误: {e}", exc_info=True)
                channel.emit(StreamChunk(done=True, error=str(e)))
                result["error"] = e

        thread = threading.Thread(target=worker, name=channel.name, daemon=True)
        thread.start()

        print("\n" + "=" * 30 + " AI 报告 " + "=" * 30)
        terminal: Optional[StreamChunk] = None
        for chunk in channel:
            if chunk.done:
                terminal = chunk
                break
            sys.stdout.write(chunk.content)
            sys.stdout.flush()
        print("\n" + "=" * 69)
        thread.join()

        if terminal is not None and terminal.error:
            logger.error(f"❌ AI 报告生成失败: {terminal.error}")
            return None
        return result.get("content")

    # --- 主流程 ---

    def run(self) -> Optional[Report]:
        ctx = self.context

        # --- 0. 环境检查 ---
        logger.info(f"✅ {git_utils.check_git_installed()}")

        # --- 1. 获取统计 ---
        stats = self.collect_stats()

        if ctx.show_log:
            self.print_full_log()

        if ctx.as_json:
            print(json.dumps(stats.to_dict(), ensure_ascii=False, indent=2))
            return None

        # --- 2. 文本报告 ---
        text_report = report_builder.generate_text_report(
            stats, ctx.project_name, ctx.time_range_desc
        )
        print(text_report)

        if stats.total_commits == 0:
            logger.warning("⚠️ 该时间范围内没有提交记录，跳过报告生成。")
            return None

        # --- 3. AI 报告 ---
        content: Optional[str] = None
        ai_service = self._create_ai_service()
        if ai_service:
            if stats.total_commits == len(stats.sample_commits):
                # 抽样已覆盖全部提交，逐条列出文件变更
                prompt = build_prompt(
                    stats.sample_commits, ctx.report_type, ctx.word_count, ctx.project_name
                )
            else:
                prompt = build_prompt_from_stats(
                    stats, ctx.report_type, ctx.word_count, ctx.project_name, ctx.time_range_desc
                )
            content = self.stream_ai_report(ai_service, prompt)
        if not content:
            content = f"```\n{text_report}\n```"

        report = Report(
            id=uuid.uuid4().hex,
            project_name=ctx.project_name,
            report_type=ctx.report_type,
            content=content,
            created_at=datetime.now().strftime(utils.DATETIME_FORMAT),
            since=ctx.since,
            until=ctx.until,
        )

        # --- 4. 保存与打开 ---
        if ctx.app_config.save_reports:
            _, html_path = report_builder.save_report(report, stats, self.global_config)
            if not ctx.no_browser:
                utils.open_report_in_browser(html_path)
        else:
            logger.info("ℹ️ 配置中关闭了报告保存 (save_reports=false)")

        return report
