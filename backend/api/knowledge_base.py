"""
Static knowledge for the UHCC non-credit portal support assistant.

- ``PORTAL_KNOWLEDGE``: the six-step account recovery procedure, what the
  portal's validation messages mean, and which side of the login page to use.
  It is embedded verbatim (as JSON) in every LLM prompt.
- ``CANNED_RESPONSES``: one literal reply per conversation state, used when
  the LLM is unavailable.
- ``QUICK_ACTIONS``: the starter messages offered on the home screen.
"""

from backend.api.models import QuickAction
from backend.api.state_classifier import ConversationState

PORTAL_URL = "https://ce.uhcc.hawaii.edu/portal/logon.do?method=load"
PORTAL_LINK = f'<a href="{PORTAL_URL}" target="_blank">portal login page</a>'

CONTACT_INFO = {
    "phone": "808-845-9129",
    "email": "help@hawaii.edu",
    "hours": "Mon-Fri 8AM-4:30PM",
    "formatted": "📞 808-845-9129\n📧 help@hawaii.edu\n🕒 Mon-Fri 8AM-4:30PM",
}

PORTAL_KNOWLEDGE = {
    "reset_process": {
        "overview": "The UHCC portal reset process follows these exact 6 steps:",
        "step1": {
            "name": "Email Validation",
            "action": "Go to 'I am a new user' section on RIGHT SIDE and enter your email",
            "goal": "Verify your email exists in the system",
            "success_indicator": "Get validation error about 'existing student record' (this is GOOD!)",
            "failure_indicator": "Contact Information page appears (means email not in system - try different email)",
            "page_url": PORTAL_URL,
        },
        "step2": {
            "name": "Username Reset Request",
            "action": "Go to 'I am an existing user' on LEFT side and click Forgot Username link to enter the SAME validated email",
            "goal": "Request username to be sent to your email",
            "success_indicator": "System confirms username reset email was sent",
            "prerequisite": "Must have validated email from Step 1",
        },
        "step3": {
            "name": "Retrieve Username",
            "action": "Check your email inbox and spam folder for UHCC username email",
            "goal": "Find your username in the email from UHCC",
            "success_indicator": "You receive and find your username in the email",
            "troubleshooting": "Check spam folder, wait a few minutes, verify correct email address",
        },
        "step4": {
            "name": "Password Reset Request",
            "action": "Go to Forgot Password page and enter your username from the email",
            "goal": "Request password reset link to be sent to your email",
            "success_indicator": "System confirms password reset email was sent",
            "prerequisite": "Must have username from Step 3",
        },
        "step5": {
            "name": "Reset Password",
            "action": "Check email for password reset link and follow instructions to set new password",
            "goal": "Set your new password using the reset link",
            "success_indicator": "Successfully set new password",
            "troubleshooting": "Check spam folder, ensure reset link hasn't expired",
        },
        "step6": {
            "name": "Login Complete",
            "action": "Log in on LEFT SIDE ('I am an existing user') with username + new password",
            "goal": "Successfully access your UHCC portal account",
            "success_indicator": "Successfully logged into portal",
            "page_url": PORTAL_URL,
        },
    },
    "validation_messages": {
        "good_validation_error": {
            "typical_message": (
                "We have found an existing student record in our database with a preferred "
                "email address that matches the one you have provided"
            ),
            "meaning": "EXCELLENT! Your email IS in the system - proceed to Step 2 (Forgot Username)",
            "action": "This is exactly what we want to see - move to next step",
        },
        "bad_outcome": {
            "indicator": "Contact Information form appears asking for name, address, phone, etc.",
            "meaning": "Your email is NOT in the system",
            "action": "Try different email addresses you might have used when first registering",
        },
    },
    "portal_sections": {
        "left_side": {
            "name": "I am an existing user",
            "when_to_use": "ONLY after you have both username AND new password (Step 6)",
            "purpose": "Final login with recovered credentials",
        },
        "right_side": {
            "name": "I am a new user",
            "when_to_use": "Step 1 only - to validate your email exists in system",
            "purpose": "Email validation check (you're not actually creating new account)",
        },
    },
    "urls": {"main_portal": PORTAL_URL},
    "contact_info": CONTACT_INFO,
}

CANNED_RESPONSES = {
    ConversationState.INITIAL: f"""Hey there! I'm here to help you get back into your UHCC continuing education account.

What's happening when you try to log in? Are you getting some kind of error message?

**Quick tip:** If you're getting a login error, we'll start by checking if your email's in the system using the "I am a new user" section on the {PORTAL_LINK}.""",

    ConversationState.HAS_LOGIN_ERROR: f"""I see you're getting a login error - that's frustrating! Don't worry, we can fix this with a simple 6-step process.

First, let's check if your email is in the system. Go to the {PORTAL_LINK} and look for the RIGHT SIDE where it says "I am a new user" - click there and enter your email.

What happens when you do that?""",

    ConversationState.CHECKING_EMAIL_VALIDATION: """Perfect! You're testing your email in the "I am a new user" section.

Remember, we want to see a validation error here - that means your email IS in the system. If it just asks for contact info, your email isn't registered.

What message appears after you enter your email?""",

    ConversationState.EMAIL_VALIDATED_READY_FOR_USERNAME: """🎉 **EXCELLENT!** That validation error is exactly what we wanted! Your email IS in the system.

Now for Step 2: Go back to the LEFT side ("I am an existing user") and click "Forgot Username". Enter that same email address. The system will send your username to your email.

Have you tried that yet?""",

    ConversationState.USERNAME_EMAIL_SENT: """Great! Step 3 now: Check your email inbox and spam folder for the username email from UHCC.

Once you find your username in that email, we'll move to Step 4 (password reset).

Did you find the email with your username?""",

    ConversationState.READY_FOR_PASSWORD_RESET: """Perfect! Now for Step 4: Go to the "Forgot Password" page and enter the username you just got from your email.

This will send a password reset link to your email for Step 5.

How did that go?""",

    ConversationState.PASSWORD_RESET_IN_PROGRESS: f"""Almost there! Step 5: Check your email (and spam folder) for the password reset email from UHCC.

Click the reset link in that email and set your new password. After that, you can log in on the LEFT side ("I am an existing user") of the {PORTAL_LINK} with your username and new password.

Were you able to reset your password?""",

    ConversationState.RESTART_NEEDED: f"""No problem! Let's start fresh with a different email address.

Sometimes the email you think you used isn't the one in the system. Let's go back to Step 1 and try a different email.

Go to the {PORTAL_LINK} and use the "I am a new user" section on the RIGHT SIDE to test a different email address.

What other email addresses might you have used when you first registered?""",

    ConversationState.PROCESS_COMPLETE: f"""🎉 **SUCCESS!** You're all set! You can now log in anytime using:
• Username: (from the first email)
• Password: (your new password)

Just use the LEFT side ("I am an existing user") of the {PORTAL_LINK}.

Is there anything else I can help you with?""",
}

DEFAULT_RESPONSE = f"""Hey! I'm here to help with UHCC portal login issues. What's happening when you try to log in?

If this is about something other than portal login problems, please contact:

{CONTACT_INFO['formatted']}"""

TECHNICAL_TROUBLE_RESPONSE = f"""I'm having some technical trouble right now. For immediate help with your login issue, please contact:

{CONTACT_INFO['formatted']}

They'll be able to help you get back into your account right away!"""


def canned_response(state: ConversationState) -> str:
    """Static reply for ``state``."""
    return CANNED_RESPONSES.get(state, DEFAULT_RESPONSE)


QUICK_ACTIONS = [
    QuickAction(
        title="I can't log in - getting validation error",
        description="Getting 'Invalid email address and/or password' error",
        action=(
            "I'm getting a validation error when I try to log in. It says 'Invalid email address "
            f"and/or password, please try again.' {PORTAL_URL}"
        ),
    ),
    QuickAction(
        title="I forgot my username",
        description="I know my email but can't remember my username",
        action=(
            "I forgot my username but I have my email address. How do I reset it? "
            "https://ce.uhcc.hawaii.edu/portal/forgotUserName.do"
        ),
    ),
    QuickAction(
        title="I forgot my password",
        description="I know my username but can't remember my password",
        action=(
            "I forgot my password but I know my username. How do I reset it? "
            "https://ce.uhcc.hawaii.edu/portal/studentForgotPassword.do"
        ),
    ),
    QuickAction(
        title="I need to check if my email is in the system",
        description="Not sure if I already have an account",
        action=f"I'm not sure if my email is already in the system. How do I check? {PORTAL_URL}",
    ),
]
