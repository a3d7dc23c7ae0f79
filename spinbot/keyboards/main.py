from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup, WebAppInfo

BTN_SPIN = "Start SOL Spin"
BTN_IMPORT_WALLET = "Import Wallet"
BTN_STAKE = "Stake Coin"
BTN_STOP = "Stop Games"


def webapp_menu_kb(frontend_url: str) -> InlineKeyboardMarkup:
    # every entry opens the same mini-app; it routes internally
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text=text, web_app=WebAppInfo(url=frontend_url))]
            for text in (BTN_SPIN, BTN_IMPORT_WALLET, BTN_STAKE, BTN_STOP)
        ]
    )
