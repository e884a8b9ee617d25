class GlobalMessages:
    # Auth Messages
    INVALID_CREDENTIALS = "Invalid credentials provided."
    CREDENTIALS_NOT_VALIDATED = "Could not validate credentials. Please log in again."
    ACCOUNT_INACTIVE = "This account has been deactivated."

    # Notification Settings Messages
    SETTINGS_SAVED = "Notification settings saved."
    SETTINGS_SAVED_LOCALLY_ONLY = "Settings saved on this device only; they may not sync to your other devices yet."
    SETTINGS_SAVE_FAILED = "Failed to save notification settings."
    SETTINGS_NOTHING_TO_UPDATE = "No notification settings were provided."
