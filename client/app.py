import asyncio
import logging

import streamlit as st

from chatsync.controller import InteractionController
from chatsync.main import build_controller, setup_client_logging
from chatsync.models import AuthMode, Message, Sender
from chatsync.settings import get_settings

settings = get_settings()
LOGGER = setup_client_logging(settings).getChild("streamlit")


def get_controller() -> InteractionController:
    """Return the per-browser-session controller, restoring a saved login once."""
    controller = st.session_state.get("controller")
    if controller is None:
        controller = build_controller(settings)
        asyncio.run(controller.start())
        st.session_state["controller"] = controller
        LOGGER.info("Controller started, logged_in=%s", controller.is_authenticated)
    return controller


def _sender_label(message: Message) -> str:
    return "You" if message.sender is Sender.USER else "AI"


def render_auth(controller: InteractionController) -> None:
    st.caption("Login or Register to continue")

    mode_label = st.radio(
        "Mode",
        options=["Login", "Register"],
        index=0 if controller.ui.auth_mode is AuthMode.LOGIN else 1,
        horizontal=True,
        label_visibility="collapsed",
    )
    controller.set_auth_mode(AuthMode.LOGIN if mode_label == "Login" else AuthMode.REGISTER)

    with st.form("auth"):
        username = st.text_input("Username", placeholder="Enter username")
        password = st.text_input("Password", type="password", placeholder="Enter password")
        submitted = st.form_submit_button(
            "Login" if controller.ui.auth_mode is AuthMode.LOGIN else "Create account"
        )

    if submitted:
        if asyncio.run(controller.submit_credentials(None, username, password)):
            st.rerun()

    if controller.ui.error_message:
        st.error(controller.ui.error_message)


def render_chat(controller: InteractionController) -> None:
    header, logout = st.columns([4, 1])
    header.markdown(f"Logged in as **{controller.display_name}**")
    if logout.button("Logout"):
        controller.logout()
        st.rerun()

    if not controller.messages:
        st.info("Start the conversation by typing a message 👋")

    for m in controller.messages:
        role = "user" if m.sender is Sender.USER else "assistant"
        with st.chat_message(role):
            st.markdown(f"**{_sender_label(m)}**")
            st.markdown(m.text)
            st.caption(m.created_at.astimezone().strftime("%X"))

    ui = controller.ui
    if ui.error_message:
        st.error(ui.error_message)
        if ui.input_buffer and st.button("Retry", disabled=ui.sending):
            asyncio.run(controller.send_message())
            st.rerun()

    placeholder = "Thinking..." if ui.sending else "Type your message and press Enter..."
    prompt = st.chat_input(placeholder, disabled=ui.sending)
    if prompt:
        with st.spinner("Thinking..."):
            asyncio.run(controller.send_message(prompt))
        st.rerun()


st.set_page_config(page_title=settings.app_title, page_icon="💬", layout="centered")
st.title(settings.app_title)

_controller = get_controller()
if _controller.is_authenticated:
    render_chat(_controller)
else:
    render_auth(_controller)
