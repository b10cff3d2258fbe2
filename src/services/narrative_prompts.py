"""Prompt builders for story narration and combat summaries.

All prompts are Chinese. The model only writes prose; every number shown to
the player is computed by the game and never parsed back from a prompt.
"""

import logging
import re
from collections import Counter
from dataclasses import dataclass
from typing import Iterable, Optional

from src.core.character.models import CLASS_LABELS, Character, ClassType, Gender
from src.core.character.registry import ItemRegistry
from src.core.combat.models import CombatOutcome, CombatResult, Enemy, EnemyRewards, TurnStatus
from src.core.quest.registry import QuestRegistry
from src.services.ai.base import ChatMessage

logger = logging.getLogger(__name__)

HISTORY_WINDOW = 15

CLASS_TRAITS: dict[ClassType, str] = {
    ClassType.ALCHEMIST: "精通炼金术，智慧超群，擅长药剂和魔法配制",
    ClassType.KNIGHT: "忠诚勇敢，体魄强健，王国的守护者",
    ClassType.SKY_PIRATE: "灵活敏捷，自由不羁，碧空之海的流浪者",
    ClassType.SCHOLAR: "博学多才，探索遗迹，知识的追寻者",
}

GENDER_LABELS: dict[Gender, str] = {
    Gender.MALE: "男",
    Gender.FEMALE: "女",
    Gender.NON_BINARY: "其他",
}

SUMMARY_PATTERN = re.compile(r"<summary[^>]*>([\s\S]*?)</summary>", re.IGNORECASE)


@dataclass(frozen=True)
class Opening:
    id: str
    name: str
    description: str
    location: str


OPENINGS: dict[str, Opening] = {
    "main": Opening("main", "主线：王都初至", "作为新晋冒险者，你第一次踏足繁华的王都阿斯拉。", "王都阿斯拉 - 中央广场"),
    "forest": Opening("forest", "支线：迷雾森林", "在幽暗的森林中苏醒，记忆模糊，危机四伏。", "迷雾森林 - 深处"),
    "ruins": Opening("ruins", "探险：古代遗迹", "站在千年遗迹前，宝藏与真相在黑暗中等待。", "古代遗迹 - 入口"),
}
DEFAULT_OPENING = "main"


def get_opening(opening_id: str) -> Opening:
    return OPENINGS.get(opening_id, OPENINGS[DEFAULT_OPENING])


STORY_SYSTEM_PROMPT = """\
<世界设定>
你是「艾瑟瑞亚战纪」的AI叙事者，这是一个魔法与科技交织的奇幻世界。
你的任务是根据玩家的行动，生成引人入胜的故事文本。

当前冒险者：
- 姓名：{name}
- 职业：{class_label}
- 性别：{gender}
- 等级：{level}
- 特质：{traits}
{appearance}
当前位置：{location}{quest_section}
</世界设定>

<创作风格>
1. 使用第二人称叙事（"你"），营造沉浸感
2. 融合日式RPG氛围：细腻的情感描写 + 幻想冒险元素
3. 适当添加NPC对话，用「」标记（例如：「欢迎来到王都！」商贩向你挥手）
4. 用*文本*标记角色的内心想法或需要强调的内容
5. 描述环境细节、气氛和角色内心感受
6. 保持故事连贯性，记住之前的对话内容
</创作风格>

<回复要求>
1. 每次回复200-300字
2. 不要输出数值（HP、金币等）
3. 不要输出选项或按钮
4. 不要输出任何结构化数据（JSON、XML等）
5. 纯粹的故事文本即可
</回复要求>

<示例>
用户输入：我走向广场中央的喷泉

你的回复：
你缓步走向广场中央，那座古老的喷泉在午后的阳光下闪烁着银色的光芒。泉水轻柔地流淌，发出悦耳的响声。喷泉中央立着一尊精美的女神雕像，她的面容温柔，仿佛在守护着这座城市的每一位冒险者。

「第一次来王都吗？」一位年轻的商贩注意到你，友好地挥了挥手，「这座喷泉可是王都的象征呢！许多冒险者都会在这里许愿祈祷。」

*或许我也该许个愿？*你心想。清凉的水雾飘散在空气中，让人感到格外舒适。
</示例>"""

QUEST_SECTION = """
当前任务：
{quest_lines}

<重要>当玩家完成上述任务时，你必须在叙述中明确说明任务完成。
例如：对于讨伐任务，当敌人被击败时，明确写出"你打败了XXX"或"XXX倒下了"。
这样系统才能自动识别任务完成并发放奖励。</重要>"""

OPENING_GREETINGS: dict[str, str] = {
    "main": """\
欢迎来到艾瑟瑞亚世界，{name}。

作为一名{class_label}，你踏上了成为传奇冒险者的旅程。此刻，你站在王都阿斯拉的中央广场上，周围是熙熙攘攘的人群和繁华的店铺。

*这就是新的开始。*你深吸一口气，准备开启你的冒险。

你想做什么？""",
    "forest": """\
{name}在幽暗的迷雾森林中苏醒。

作为一名{class_label}，你不记得自己是如何来到这片陌生森林的。四周弥漫着浓厚的雾气，古老的树木遮天蔽日，远处传来不知名生物的低吼声。

*这是哪里？我为什么会在这？*你努力回想，但记忆一片模糊。

唯一清晰的是，你必须找到出路。""",
    "ruins": """\
{name}站在古代遗迹的入口前。

作为一名{class_label}，你被这座沉睡千年的遗迹所吸引。石门上刻满了古老的文字和神秘的符号，似乎在诉说着一个被遗忘的故事。

「小心点，」同行的向导提醒你，「许多冒险者进去后就再也没出来。」

*但宝藏和真相就在里面。*你握紧手中的装备，准备踏入未知。""",
}

LAST_INPUT_BLOCK = """\
<last_input>
玩家当前指令如下，请以此为最高优先级进行叙事响应：
{action}
</last_input>"""

PLAYER_CONTEXT_BLOCK = """\
<player_context>
等级：{level}
行动点：{current_ap}/{max_ap}
当前位置：{location}
进行中的任务：{quests}
万宝阁收藏：{relics} 件
</player_context>"""

SUMMARY_INSTRUCTIONS = """
[角色设定]
玩家姓名：{name}
玩家职业：{class_label}
玩家当前所在地点：{location}
你以全知视角出发，用生动的文字记录和总结这次战斗。
在这段旅程中，玩家的妹妹「莉亚」一直陪在玩家身边，性格活泼、稍微有点毒舌，但非常在意玩家的安危。

[叙事指令]
1. 用第二人称“你”来称呼玩家，用第三人称描写莉亚（例如“莉亚一边……一边……”）。
2. 用 2-3 句话，总结本次战斗的重要过程和收获。
3. 总结中要明确提到莉亚在战斗过程中的反应、吐槽或担心，以及她对玩家表现的评价（既可以调侃，也要有真心的肯定）。
4. 语气保持轻松、有点吐槽又温暖，像 DM 在记录冒险日志。
5. 不要使用列表或分点，只写连续自然的叙事句子。
6. 不要逐条复述上面的结构化数据，只挑最重要的亮点写。
7. 支持的富文本格式：用 *星号* 包裹的词会被高亮（例如 *关键一击*），对话请放在中文书名号「」中（例如 「莉亚：别再乱冲啦！」），需要换行时直接插入换行符；不要输出任何 HTML 标签。

[输出格式]
请只输出一个 XML 片段，形如：
<summary>
（这里是你的总结文本，不要再包含任何提示词或标签）
</summary>
不要输出其它说明、前后缀或额外标签。
"""


def extract_summary(raw: str) -> str:
    """Return the text inside <summary>...</summary>, or the whole reply."""
    if not raw:
        return ""
    match = SUMMARY_PATTERN.search(raw)
    if match and match.group(1):
        return match.group(1).strip()
    return raw.strip()


class PromptBuilder:
    """Builds model input for each narration call."""

    def __init__(self, item_registry: ItemRegistry, quest_registry: QuestRegistry) -> None:
        self._items = item_registry
        self._quests = quest_registry

    # === story ===

    def system_prompt(self, character: Character, location: str) -> str:
        quest_lines = []
        for quest_id in character.active_quests:
            quest = self._quests.get(quest_id)
            if quest is not None:
                quest_lines.append(f"- {quest.title}：{quest.description}")

        quest_section = QUEST_SECTION.format(quest_lines="\n".join(quest_lines)) if quest_lines else ""
        appearance = f"- 外貌：{character.appearance}\n" if character.appearance else ""

        return STORY_SYSTEM_PROMPT.format(
            name=character.name,
            class_label=CLASS_LABELS[character.class_type],
            gender=GENDER_LABELS.get(character.gender, "其他"),
            level=character.level,
            traits=CLASS_TRAITS[character.class_type],
            appearance=appearance,
            location=location,
            quest_section=quest_section,
        )

    @staticmethod
    def opening_greeting(character: Character, opening_id: str) -> str:
        template = OPENING_GREETINGS.get(opening_id, OPENING_GREETINGS[DEFAULT_OPENING])
        return template.format(name=character.name, class_label=CLASS_LABELS[character.class_type])

    def player_context(self, character: Character, location: str, relic_count: int) -> str:
        titles = [
            quest.title
            for quest in (self._quests.get(qid) for qid in character.active_quests)
            if quest is not None
        ]
        return PLAYER_CONTEXT_BLOCK.format(
            level=character.level,
            current_ap=character.current_ap,
            max_ap=character.max_ap,
            location=location,
            quests="、".join(titles) if titles else "无",
            relics=relic_count,
        )

    def player_turn_messages(
        self,
        character: Character,
        location: str,
        history: Iterable,
        action: str,
        relic_count: int = 0,
    ) -> list[ChatMessage]:
        """Messages for one player action.

        ``history`` is the adventure log without the pending placeholder.
        Only dialogue entries are sent, the last HISTORY_WINDOW of them.
        The system prompt travels as the first user message.
        """
        dialogue = [entry for entry in history if entry.type == "dialogue"][-HISTORY_WINDOW:]
        messages = [ChatMessage(role="user", content=self.system_prompt(character, location))]

        for entry in dialogue:
            role = "user" if entry.speaker == character.name else "assistant"
            if messages[-1].role == role:
                messages[-1].content += f"\n{entry.text}"
            else:
                messages.append(ChatMessage(role=role, content=entry.text))

        block = (
            LAST_INPUT_BLOCK.format(action=action)
            + "\n\n"
            + self.player_context(character, location, relic_count)
        )
        if messages[-1].role == "user":
            messages[-1].content += f"\n\n{block}"
        else:
            messages.append(ChatMessage(role="user", content=block))
        return messages

    # === combat ===

    def _item_name(self, key: str) -> str:
        template = self._items.get(key)
        return template.name if template else key

    @staticmethod
    def _enemy_line(result: CombatResult, with_reason: bool) -> str:
        enemy = result.enemy
        line = f"  - {enemy.name} ({enemy.rank.value}级 Lv.{enemy.level})"
        if with_reason and result.failure_reason:
            line += f" - {result.failure_reason}"
        return line

    def combat_session_report(self, results: list[CombatResult]) -> str:
        """Structured battle digest. Shown to the player and sent to the model."""
        victories = [r for r in results if r.outcome == CombatOutcome.VICTORY]
        defeats = [r for r in results if r.outcome == CombatOutcome.DEFEAT]
        retreats = [r for r in results if r.outcome == CombatOutcome.RETREAT]

        text = f"[战斗数据汇总]\n本次探险进行了 {len(results)} 场战斗：\n\n"
        if victories:
            text += f"胜利：{len(victories)} 次\n"
            text += "\n".join(self._enemy_line(r, False) for r in victories) + "\n\n"
        if defeats:
            text += f"失败：{len(defeats)} 次\n"
            text += "\n".join(self._enemy_line(r, True) for r in defeats) + "\n\n"
        if retreats:
            text += f"撤退：{len(retreats)} 次\n"
            text += "\n".join(self._enemy_line(r, True) for r in retreats) + "\n\n"

        if victories:
            total_gold = sum(r.rewards.gold for r in victories)
            total_exp = sum(r.rewards.exp for r in victories)
            text += "累计收获：\n"
            text += f"  - 金币：{total_gold}\n"
            text += f"  - 经验值：{total_exp}\n"
            counts = Counter(self._item_name(key) for r in victories for key in r.rewards.items)
            if counts:
                stacked = "、".join(f"{name}×{count}" for name, count in counts.items())
                text += f"  - 道具：{stacked}\n"
        return text

    def combat_summary_prompt(self, report: str, character: Character, location: str) -> str:
        return report + SUMMARY_INSTRUCTIONS.format(
            name=character.name,
            class_label=CLASS_LABELS[character.class_type],
            location=location,
        )

    @staticmethod
    def fallback_summary(results: list[CombatResult]) -> str:
        victories = [r for r in results if r.outcome == CombatOutcome.VICTORY]
        if victories:
            gold = sum(r.rewards.gold for r in victories)
            exp = sum(r.rewards.exp for r in victories)
            detail = f"击败了 {len(victories)} 个敌人，获得了 {gold} 金币和 {exp} 经验值"
        else:
            detail = "经历了艰苦的战斗"
        return f"战斗结束。你在这次探险中{detail}。"

    def combat_result_prompt(
        self,
        status: TurnStatus,
        enemy: Enemy,
        rewards: Optional[EnemyRewards] = None,
    ) -> str:
        """First-person prompt narrating a single finished battle."""
        head = f"我遭遇了{enemy.rank.value}级敌人「{enemy.name}」（Lv.{enemy.level}），战斗结果："
        if status == TurnStatus.VICTORY:
            gold = rewards.gold if rewards else 0
            exp = rewards.exp if rewards else 0
            item_text = ""
            if rewards and rewards.items:
                item_text = "\n获得物品：" + "、".join(self._item_name(key) for key in rewards.items)
            return f"{head}胜利！获得奖励：金币 +{gold}，经验 +{exp}{item_text}"
        if status == TurnStatus.DEFEAT:
            return f"{head}失败...行动点耗尽，请叙述我如何从失败中恢复（可能是路人救助、或自动回到安全点）。"
        if status == TurnStatus.ESCAPED:
            return f"{head}成功撤退，逃离了战斗。"
        if status == TurnStatus.TIMEOUT:
            return f"{head}回合用尽，敌人逃走了。"
        raise ValueError(f"Not a terminal status: {status}")
