"""
Prompt Templates

Prompt text for sales-script generation and company profile lookup,
plus helpers that assemble chat excerpts and reference material.
"""

import logging
import re
from pathlib import Path
from typing import Sequence

from ..models import Message

logger = logging.getLogger(__name__)


# Max characters kept from each reference file
REFERENCE_CHAR_LIMIT = 60000

# Messages included when generation is not scoped to one trigger message
RECENT_MESSAGE_LIMIT = 50


SYSTEM_INSTRUCTION = "営業トーク台本の体裁を厳格に守ってください。"


SALES_SCRIPT_PROMPT = """あなたは、複数の業種に対応可能な汎用的な営業トークを作成のプロです

✅ あなたが行うタスクは以下の2つです：
※必ず 1）営業トークの作成 → 2）Q&Aの作成 の順番で実行してください。
※営業トーク作成にあたっては、参考資料のトークスクリプトのプロット①およびプロット②を参考にしてください。
※読みやすさと視認性を重視し、句点（。）や読点（、）は自然な範囲で適切に使用してください。

1)営業トークの作成
対象企業の業種や強みを踏まえた営業トークを、以下の流れに沿って作成してください。

「プロット①」「プロット②」いずれも、名乗りの部分では商材名やサービス名ではなく、
**「ユーザー指定の企業名＋○○（担当者名）」**で名乗ってください。
両プロットとも、特定業界に限定する言い回しは避け、幅広い業種に適用できるようにしてください。

プロット①（受付突破）
受付に対して、担当者へ繋いでもらうためのトークを作成してください。
内容は、簡潔に営業感の薄い呼び出し方にしてください。
以下のフォーマットを厳守してください：

【担当者呼出テンプレート】
お世話になります。私、《企業名》の【○○】でございます。
《○○》のご責任者様は
「お見えでしょうか？（午前）」「お戻りでしょうか？（午後）」

➡ いないと言われた場合は、以下の文言を使ってください：
「それであれば、《○○についてわかる方》や、《○○を担当されている方》におつなぎいただけますでしょうか？」

具体的にはと聞かれた場合、導入のメリットやベネフィットを端的に説明して、
「お繋ぎいただけますでしょうか」と打診する文面にしてください。

プロット②（営業対象者との通話）
■出力構成（必須３ステップ）
1. 私は何者で（約5秒）
2. 何を目的に電話して（約5秒）
3. 相手にとってのメリット（約10秒）

■口語体トーン
- 「です・ます調」ベースだが硬すぎない
- 「○○なんです」「○○ですよ」「○○なんですけど」を多用
- 「おかげさまで」「実は」など自然な話し言葉
- 関西弁は使わない

■文体ルール
- 事例ベースで具体的数字を盛り込む
- 相手の立場・課題を捉え、最後にクロージング

✅ 切り返しに関する追加指示：
切り返しの文末は、理由を伝えたあとに必ずクロージング文（行動を促す一文）を入れてください。

2）想定Q&Aの作成
対象企業に対して、営業シーンで想定ターゲットから受けそうな質問とその回答を複数パターン作成してください。
参考資料の「Q&A集」を必ず参考にしてください。

前提として守るべきルール
・ハルシネーション（事実に基づかない創作）は絶対にしないこと
・アウトプットは、読み込んだ資料・知識のみを根拠にすること
・資料に記載されていない情報は補完しないこと
・「プロット①」「プロット②」「想定Q&A」の見出しをそれぞれ必ず付けて出力すること"""


COMPANY_INFO_PROMPT = """以下の企業について、利用可能な情報から企業情報を抽出してください。

企業名: {company_name}
企業URL: {company_url}

以下の項目について、取得できる情報のみを記載してください。不明な項目は「不明」と記載してください。

1. 事業内容: 主要な事業・サービス内容を簡潔に
2. 代表者: 代表取締役や社長の氏名
3. 従業員数: 正確な人数または概算
4. 本社住所: 本社所在地の住所

出力フォーマット:
事業内容: [内容]
代表者: [氏名]
従業員数: [人数]
本社住所: [住所]"""


_TAG = re.compile(r"<[^>]+>")


def format_chat_excerpt(messages: Sequence[Message]) -> str:
    """One bullet per message: `- author: body` with HTML tags blanked."""
    return "\n".join(f"- {m.author}: {_TAG.sub(' ', m.body)}" for m in messages)


def read_reference_text(path: Path, limit: int = REFERENCE_CHAR_LIMIT) -> str:
    """Read a reference file, truncated to keep the prompt bounded. Missing files read as ''."""
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.debug(f"Reference file {path} unavailable: {e}")
        return ""
    if len(raw) > limit:
        return raw[:limit] + "\n...(truncated)"
    return raw


def load_reference_section(reference_dir: Path, filenames: Sequence[str]) -> str:
    """Prompt section listing every readable reference file."""
    items = []
    for name in filenames:
        text = read_reference_text(reference_dir / name.lstrip("/"))
        if text:
            items.append(f"- {name}:\n{text}")
    if not items:
        return ""
    return "\n【参考資料（CSV）】\n" + "\n\n".join(items)


def build_script_prompt(messages: Sequence[Message], reference_section: str = "") -> str:
    """Full generation prompt: instructions, chat excerpt, references."""
    return f"{SALES_SCRIPT_PROMPT}\n\n【チャット抜粋】\n{format_chat_excerpt(messages)}{reference_section}"


def build_company_info_prompt(company_name: str, company_url: str) -> str:
    return COMPANY_INFO_PROMPT.format(company_name=company_name, company_url=company_url)
