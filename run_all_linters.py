#!/usr/bin/env python3
"""統一的檢查腳本，執行所有 linter、格式化工具與單元測試。

這個腳本會依序執行：
1. Black 格式化
2. isort 匯入排序
3. Ruff 靜態檢查
4. Pylint 靜態分析
5. pytest 單元測試

加上 --fix 時 Black、isort、Ruff 會直接修正檔案；
加上 --skip-tests 時略過 pytest。
"""

import argparse
from pathlib import Path
import subprocess
import sys

ROOT = Path(__file__).parent
PACKAGES = ["app", "core", "infrastructure", "main.py"]


def run_command(cmd: list[str], description: str) -> tuple[bool, str]:
    """執行命令並返回成功狀態和輸出。"""
    print(f"\n{'='*60}")
    print(f"執行: {description}")
    print(f"命令: {' '.join(cmd)}")
    print("=" * 60)

    try:
        result = subprocess.run(cmd, capture_output=True, text=True, check=False, cwd=ROOT)
    except OSError as e:
        print(f"❌ 執行錯誤: {e}")
        return False, str(e)

    success = result.returncode == 0
    output = result.stdout + result.stderr
    print("✅ 成功" if success else "❌ 失敗")
    if output.strip():
        print("\n輸出:")
        print(output)
    else:
        print("(無輸出)")
    return success, output


def build_commands(fix: bool, skip_tests: bool) -> list[tuple[list[str], str]]:
    """依選項組出要執行的命令清單。"""
    py = sys.executable
    black = [py, "-m", "black", "."] + ([] if fix else ["--check"])
    isort = [py, "-m", "isort", "."] + ([] if fix else ["--check-only"])
    ruff = [py, "-m", "ruff", "check", "."] + (["--fix"] if fix else [])
    commands = [
        (black, "Black 格式化" if fix else "Black 格式化檢查"),
        (isort, "isort 匯入排序" if fix else "isort 匯入排序檢查"),
        (ruff, "Ruff 靜態檢查"),
        ([py, "-m", "pylint", *PACKAGES], "Pylint 靜態分析"),
    ]
    if not skip_tests:
        commands.append(([py, "-m", "pytest", "-q", "tests"], "pytest 單元測試"))
    return commands


def main() -> None:
    """主函數：依序執行所有檢查。"""
    parser = argparse.ArgumentParser(description="執行所有 linter 與測試")
    parser.add_argument("--fix", action="store_true", help="直接修正格式與可自動修正的問題")
    parser.add_argument("--skip-tests", action="store_true", help="略過 pytest")
    args = parser.parse_args()

    print("開始執行所有 linter 與測試...")
    results = []
    for cmd, description in build_commands(args.fix, args.skip_tests):
        success, output = run_command(cmd, description)
        results.append((description, success, output))

    # 總結報告
    print(f"\n{'='*60}")
    print("總結報告")
    print("=" * 60)
    for description, success, _ in results:
        print(f"{description}: {'✅ 通過' if success else '❌ 失敗'}")

    all_passed = all(success for _, success, _ in results)
    print(f"\n整體結果: {'✅ 全部通過' if all_passed else '❌ 有錯誤'}")

    if not all_passed:
        print("\n詳細錯誤資訊:")
        for description, success, output in results:
            if not success and output.strip():
                print(f"\n--- {description} 錯誤 ---")
                print(output)

    sys.exit(0 if all_passed else 1)


if __name__ == "__main__":
    main()
